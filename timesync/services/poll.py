"""
Meeting poll workflow: create a meeting, collect availability, and once every
expected participant has answered, compute and announce the results.
"""
import threading
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from timesync.core.models import (
    Meeting,
    MeetingResults,
    MeetingStatus,
    MeetingType,
    OverlapResult,
    Participant,
    Suggestion,
    TimeSlot,
)
from timesync.core.timezones import is_known_timezone
from timesync.observability.logger import log_error, log_event, log_warning
from timesync.scheduling.compromise import CompromiseSelector
from timesync.scheduling.overlap import compute_overlap
from timesync.services.notifier import ResultsNotifier
from timesync.services.recipients import Recipient
from timesync.storage.store import MeetingNotFoundError, MeetingStore, new_id


Dispatch = Callable[..., Any]


def _run_inline(func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    func(*args, **kwargs)


class SubmissionResult(BaseModel):
    participant: Participant
    is_complete: bool
    overlap: Optional[OverlapResult] = None
    suggestion: Optional[Suggestion] = None
    participants_remaining: Optional[int] = None


class PollService:
    """
    Coordinates storage, the scheduling engine, and notifications.

    Collaborators are injected; notifier may be None to skip emails.
    """

    def __init__(
        self,
        store: MeetingStore,
        selector: CompromiseSelector,
        notifier: Optional[ResultsNotifier] = None,
    ):
        self.store = store
        self.selector = selector
        self.notifier = notifier
        self._completion_lock = threading.Lock()

    def get_meeting(self, meeting_id: str) -> Meeting:
        meeting = self.store.get_meeting(meeting_id)
        if meeting is None:
            raise MeetingNotFoundError(meeting_id)
        return meeting

    def create_meeting(
        self,
        organizer_name: str,
        organizer_email: str,
        organizer_timezone: str,
        expected_participants: int,
        date_range_start: datetime,
        date_range_end: datetime,
        slot_duration: int,
        availability: List[TimeSlot],
        meeting_type: MeetingType = MeetingType.ONE_TIME,
        selected_dates: Optional[List[date]] = None,
        dispatch: Dispatch = _run_inline,
    ) -> Meeting:
        """Create a meeting with the organizer as its first participant."""
        self._warn_unknown_timezone(organizer_timezone)
        organizer = Participant(
            id=new_id(),
            name=organizer_name,
            email=organizer_email,
            timezone=organizer_timezone,
            availability=list(availability),
        )
        meeting = Meeting(
            id=new_id(),
            organizer_name=organizer_name,
            organizer_email=organizer_email,
            organizer_timezone=organizer_timezone,
            meeting_type=meeting_type,
            date_range_start=date_range_start,
            date_range_end=date_range_end,
            selected_dates=selected_dates or [],
            slot_duration=slot_duration,
            expected_participants=expected_participants,
            participants=[organizer],
        )
        created = self.store.create_meeting(meeting)
        log_event(action="created", meeting_id=created.id, meeting_type=created.meeting_type.value)

        results = self._complete_if_ready(created, dispatch)
        if results is not None:
            return self.get_meeting(created.id)
        return created

    def submit_availability(
        self,
        meeting_id: str,
        name: str,
        email: str,
        timezone: str,
        availability: List[TimeSlot],
        dispatch: Dispatch = _run_inline,
    ) -> SubmissionResult:
        """
        Record a participant's availability, replacing any earlier submission
        from the same email.

        When this submission brings the meeting to its expected headcount the
        meeting is completed, results are computed, and notifications are
        handed to dispatch.
        """
        self._warn_unknown_timezone(timezone)
        snapshot = self.store.replace_participant(meeting_id, name, email, timezone, availability)
        participant = snapshot.find_participant(email)
        log_event(action="submitted", meeting_id=meeting_id, participants=len(snapshot.participants))

        if len(snapshot.participants) < snapshot.expected_participants:
            return SubmissionResult(
                participant=participant,
                is_complete=False,
                participants_remaining=snapshot.expected_participants - len(snapshot.participants),
            )

        results = self._complete_if_ready(snapshot, dispatch)
        if results is None:
            # Already completed earlier; report against the fresh snapshot
            results = self.compute_results(snapshot)

        return SubmissionResult(
            participant=participant,
            is_complete=True,
            overlap=results.overlap,
            suggestion=results.suggestion,
        )

    def compute_results(self, meeting: Meeting) -> MeetingResults:
        """Overlap for the meeting's participants, plus a compromise when there is none."""
        overlap = compute_overlap(meeting.participants, meeting.slot_duration, meeting.meeting_type)
        suggestion = None
        if not overlap.has_overlap:
            suggestion = self.selector.suggest(
                meeting.participants,
                meeting.slot_duration,
                meeting.date_range_start,
                meeting.date_range_end,
            )
        return MeetingResults(
            meeting_id=meeting.id,
            meeting_type=meeting.meeting_type,
            overlap=overlap,
            suggestion=suggestion,
        )

    def notify(self, meeting: Meeting, results: MeetingResults) -> Dict[str, bool]:
        """Send results to every participant. Never raises."""
        if self.notifier is None:
            return {}
        recipients = [Recipient.from_participant(p) for p in meeting.participants]
        try:
            return self.notifier.send_results(
                recipients,
                results.overlap,
                results.suggestion,
                meeting.meeting_type,
                meeting_id=meeting.id,
            )
        except Exception as e:
            log_error(e, {"meeting_id": meeting.id, "action": "notify_failed"})
            return {r.email: False for r in recipients}

    def _complete_if_ready(self, snapshot: Meeting, dispatch: Dispatch) -> Optional[MeetingResults]:
        """
        Transition ACTIVE -> COMPLETED once; returns results only on that transition.

        Results and notifications use the meeting as re-read under the lock, so a
        submission that lands after the caller's snapshot is still included.
        """
        if len(snapshot.participants) < snapshot.expected_participants:
            return None

        with self._completion_lock:
            current = self.get_meeting(snapshot.id)
            if current.status == MeetingStatus.COMPLETED:
                return None
            current = self.store.update_status(current.id, MeetingStatus.COMPLETED)

        results = self.compute_results(current)
        log_event(
            action="completed",
            meeting_id=current.id,
            recipients_count=len(current.participants),
            has_overlap=results.overlap.has_overlap,
            has_suggestion=results.suggestion is not None,
        )
        try:
            dispatch(self.notify, current, results)
        except Exception as e:
            log_error(e, {"meeting_id": current.id, "action": "dispatch_failed"})
        return results

    def _warn_unknown_timezone(self, timezone: str) -> None:
        if not is_known_timezone(timezone):
            log_warning("Unrecognized timezone, local times fall back to UTC", {"timezone": timezone})
