from pydantic import BaseModel

from timesync.core.models import Participant


class Recipient(BaseModel):
    name: str
    email: str
    timezone: str

    @classmethod
    def from_participant(cls, participant: Participant) -> "Recipient":
        return cls(name=participant.name, email=participant.email, timezone=participant.timezone)
