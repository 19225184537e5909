from typing import Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from fastapi.responses import JSONResponse

from timesync.core.config import load_config
from timesync.core.timezones import TIMEZONES
from timesync.llm.service import select_reasoning_client
from timesync.scheduling.compromise import CompromiseSelector
from timesync.schemas.meetings import (
    CreateMeetingRequest,
    MeetingOut,
    SubmissionResponse,
    SubmitAvailabilityRequest,
)
from timesync.services.emailer import select_emailer
from timesync.services.notifier import ResultsNotifier
from timesync.services.poll import PollService
from timesync.storage.store import MeetingNotFoundError, MeetingStore, select_meeting_store


router = APIRouter()

EMPTY_AVAILABILITY_DETAIL = "Please select at least one available time slot"

_store: Optional[MeetingStore] = None
_service: Optional[PollService] = None


def get_store() -> MeetingStore:
    global _store
    if _store is None:
        _store = select_meeting_store()
    return _store


def get_poll_service() -> PollService:
    """Build the poll service once, wiring collaborators from configuration."""
    global _service
    if _service is None:
        cfg = load_config()
        notifier = ResultsNotifier(
            emailer=select_emailer(cfg),
            sender=cfg.default_sender,
            include_plaintext=cfg.include_plaintext,
        )
        _service = PollService(
            store=get_store(),
            selector=CompromiseSelector(select_reasoning_client(cfg)),
            notifier=notifier,
        )
    return _service


def reset_services() -> None:
    """Drop cached collaborators so the next request rebuilds them from env."""
    global _store, _service
    _store = None
    _service = None


def _require_api_key_if_configured(request: Request) -> None:
    cfg = load_config()
    if not cfg.api_key:
        return
    provided = request.headers.get("x-api-key") or request.headers.get("X-API-Key")
    if provided != cfg.api_key:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


def _meeting_or_404(service: PollService, meeting_id: str):
    try:
        return service.get_meeting(meeting_id)
    except MeetingNotFoundError:
        raise HTTPException(status_code=404, detail="Meeting not found")


@router.get("/timezones")
async def list_timezones() -> JSONResponse:
    return JSONResponse({"ok": True, "timezones": TIMEZONES})


@router.post("/meetings", status_code=201)
def create_meeting(request: Request, body: CreateMeetingRequest, background_tasks: BackgroundTasks):
    _require_api_key_if_configured(request)
    if not body.availability:
        raise HTTPException(status_code=400, detail=EMPTY_AVAILABILITY_DETAIL)
    if body.date_range_end < body.date_range_start:
        raise HTTPException(status_code=400, detail="date_range_end must not be before date_range_start")

    service = get_poll_service()
    meeting = service.create_meeting(
        organizer_name=body.organizer_name,
        organizer_email=str(body.organizer_email),
        organizer_timezone=body.organizer_timezone,
        expected_participants=body.expected_participants,
        date_range_start=body.date_range_start,
        date_range_end=body.date_range_end,
        slot_duration=body.slot_duration,
        availability=body.availability,
        meeting_type=body.meeting_type,
        selected_dates=body.selected_dates,
        dispatch=background_tasks.add_task,
    )
    # Link the organizer forwards to participants
    share_url = f"{load_config().base_url.rstrip('/')}/meetings/{meeting.id}"
    return MeetingOut.model_validate({**meeting.model_dump(), "share_url": share_url})


@router.get("/meetings/{meeting_id}")
def get_meeting(request: Request, meeting_id: str):
    _require_api_key_if_configured(request)
    meeting = _meeting_or_404(get_poll_service(), meeting_id)
    return MeetingOut.model_validate(meeting.model_dump())


@router.post("/meetings/{meeting_id}/participants")
def submit_availability(
    request: Request,
    meeting_id: str,
    body: SubmitAvailabilityRequest,
    background_tasks: BackgroundTasks,
):
    _require_api_key_if_configured(request)
    if not body.availability:
        raise HTTPException(status_code=400, detail=EMPTY_AVAILABILITY_DETAIL)

    service = get_poll_service()
    try:
        result = service.submit_availability(
            meeting_id=meeting_id,
            name=body.name,
            email=str(body.email),
            timezone=body.timezone,
            availability=body.availability,
            dispatch=background_tasks.add_task,
        )
    except MeetingNotFoundError:
        raise HTTPException(status_code=404, detail="Meeting not found")

    return SubmissionResponse(**result.model_dump())


@router.get("/meetings/{meeting_id}/results")
def get_results(request: Request, meeting_id: str):
    _require_api_key_if_configured(request)
    service = get_poll_service()
    meeting = _meeting_or_404(service, meeting_id)
    return service.compute_results(meeting)
