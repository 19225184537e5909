import json
import os
import threading
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from timesync.core.config import AppConfig, load_config
from timesync.core.models import Meeting, MeetingStatus, Participant, TimeSlot


class MeetingNotFoundError(KeyError):
    """Raised when a meeting id is unknown to the store."""


class MeetingStore(Protocol):
    def create_meeting(self, meeting: Meeting) -> Meeting:
        ...

    def get_meeting(self, meeting_id: str) -> Optional[Meeting]:
        """Return a full snapshot of the meeting with every participant, or None."""
        ...

    def replace_participant(
        self,
        meeting_id: str,
        name: str,
        email: str,
        timezone: str,
        availability: List[TimeSlot],
    ) -> Meeting:
        """
        Create the participant or fully replace their availability, keyed by email.

        Must be atomic: readers never observe a partially replaced set.
        """
        ...

    def update_status(self, meeting_id: str, status: MeetingStatus) -> Meeting:
        ...


def new_id() -> str:
    return uuid.uuid4().hex


def _apply_participant(meeting: Meeting, name: str, email: str, timezone: str, availability: List[TimeSlot]) -> None:
    existing = meeting.find_participant(email)
    if existing is not None:
        replacement = existing.model_copy(update={
            "name": name,
            "timezone": timezone,
            "availability": list(availability),
        })
        meeting.participants = [replacement if p.email == email else p for p in meeting.participants]
    else:
        meeting.participants = meeting.participants + [
            Participant(id=new_id(), name=name, email=email, timezone=timezone, availability=list(availability))
        ]


class InMemoryMeetingStore:
    """Process-local store; every read returns a deep copy."""

    def __init__(self) -> None:
        self._meetings: Dict[str, Meeting] = {}
        self._lock = threading.Lock()

    def create_meeting(self, meeting: Meeting) -> Meeting:
        with self._lock:
            self._meetings[meeting.id] = meeting.model_copy(deep=True)
            return meeting.model_copy(deep=True)

    def get_meeting(self, meeting_id: str) -> Optional[Meeting]:
        with self._lock:
            meeting = self._meetings.get(meeting_id)
            return meeting.model_copy(deep=True) if meeting else None

    def replace_participant(self, meeting_id: str, name: str, email: str, timezone: str, availability: List[TimeSlot]) -> Meeting:
        with self._lock:
            meeting = self._meetings.get(meeting_id)
            if meeting is None:
                raise MeetingNotFoundError(meeting_id)
            _apply_participant(meeting, name, email, timezone, availability)
            return meeting.model_copy(deep=True)

    def update_status(self, meeting_id: str, status: MeetingStatus) -> Meeting:
        with self._lock:
            meeting = self._meetings.get(meeting_id)
            if meeting is None:
                raise MeetingNotFoundError(meeting_id)
            meeting.status = status
            return meeting.model_copy(deep=True)


class JsonFileMeetingStore:
    """
    Single JSON file holding every meeting, keyed by id.

    Writes go to a temporary file that replaces the original, so a crash never
    leaves a half-written availability set behind.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Meeting]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return {meeting_id: Meeting.model_validate(data) for meeting_id, data in raw.items()}

    def _save(self, meetings: Dict[str, Meeting]) -> None:
        payload = {meeting_id: meeting.model_dump(mode="json") for meeting_id, meeting in meetings.items()}
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f)
        os.replace(tmp_path, self.path)

    def create_meeting(self, meeting: Meeting) -> Meeting:
        with self._lock:
            meetings = self._load()
            meetings[meeting.id] = meeting
            self._save(meetings)
            return meeting.model_copy(deep=True)

    def get_meeting(self, meeting_id: str) -> Optional[Meeting]:
        with self._lock:
            return self._load().get(meeting_id)

    def replace_participant(self, meeting_id: str, name: str, email: str, timezone: str, availability: List[TimeSlot]) -> Meeting:
        with self._lock:
            meetings = self._load()
            meeting = meetings.get(meeting_id)
            if meeting is None:
                raise MeetingNotFoundError(meeting_id)
            _apply_participant(meeting, name, email, timezone, availability)
            self._save(meetings)
            return meeting

    def update_status(self, meeting_id: str, status: MeetingStatus) -> Meeting:
        with self._lock:
            meetings = self._load()
            meeting = meetings.get(meeting_id)
            if meeting is None:
                raise MeetingNotFoundError(meeting_id)
            meeting.status = status
            self._save(meetings)
            return meeting


def select_meeting_store(config: Optional[AppConfig] = None) -> MeetingStore:
    """Factory function to select the meeting store based on MEETING_STORE."""
    cfg = config or load_config()
    if cfg.meeting_store == "memory":
        return InMemoryMeetingStore()
    if cfg.meeting_store == "json":
        return JsonFileMeetingStore(cfg.meeting_store_path)
    raise ValueError(f"Unsupported MEETING_STORE: {cfg.meeting_store}")
