import logging
from typing import Dict, Optional, Sequence

from timesync.core.models import MeetingType, OverlapResult, Suggestion
from timesync.observability.logger import log_error, log_event, timing
from timesync.rendering.context_builder import build_results_context, results_subject
from timesync.rendering.plaintext import render_plaintext
from timesync.rendering.results_renderer import render_results_html
from timesync.routes.health import update_last_run
from timesync.services.emailer import Emailer
from timesync.services.recipients import Recipient

logger = logging.getLogger(__name__)


class ResultsNotifier:
    """
    Emails every participant the meeting results in their own timezone.

    Each recipient gets an independent message; a failed send is logged and
    reported as False without stopping the rest.
    """

    def __init__(self, emailer: Emailer, sender: str, include_plaintext: bool = True):
        self.emailer = emailer
        self.sender = sender
        self.include_plaintext = include_plaintext

    def send_results(
        self,
        recipients: Sequence[Recipient],
        overlap: OverlapResult,
        suggestion: Optional[Suggestion] = None,
        meeting_type: MeetingType = MeetingType.ONE_TIME,
        meeting_id: str = "",
    ) -> Dict[str, bool]:
        subject = results_subject(overlap)
        driver = getattr(self.emailer, "driver", "unknown")
        outcome: Dict[str, bool] = {}

        with timing("results_notification") as timer:
            for recipient in recipients:
                outcome[recipient.email] = self._send_one(
                    recipient, recipients, overlap, suggestion, meeting_type, subject, meeting_id
                )

        delivered = sum(1 for ok in outcome.values() if ok)
        update_last_run(
            action="notified",
            meeting_id=meeting_id,
            driver=driver,
            recipients_count=len(outcome),
            delivered_count=delivered,
            duration_ms=timer.get_duration_ms(),
            success=delivered == len(outcome),
        )
        return outcome

    def _send_one(
        self,
        recipient: Recipient,
        everyone: Sequence[Recipient],
        overlap: OverlapResult,
        suggestion: Optional[Suggestion],
        meeting_type: MeetingType,
        subject: str,
        meeting_id: str,
    ) -> bool:
        try:
            context = build_results_context(recipient, everyone, overlap, suggestion, meeting_type)
            html = render_results_html(context)
            plaintext = render_plaintext(context) if self.include_plaintext else None
            message_id = self.emailer.send(
                subject=subject,
                html=html,
                recipients=[recipient.email],
                sender=self.sender,
                plaintext=plaintext,
            )
        except Exception as e:
            log_error(e, {"meeting_id": meeting_id, "action": "notify_failed"})
            return False

        log_event(
            action="sent",
            meeting_id=meeting_id,
            recipients_count=1,
            driver=getattr(self.emailer, "driver", "unknown"),
            recipient=recipient.email,
            message_id=message_id,
        )
        return True
