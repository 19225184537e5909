from __future__ import annotations

import logging
import smtplib
import time
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

import httpx
from fastapi import HTTPException

from timesync.core.config import AppConfig, load_config
from timesync.observability.logger import mask_email

logger = logging.getLogger(__name__)

BACKOFFS = [0.2, 0.4, 0.8]


class Emailer:
    driver: str

    def send(self, subject: str, html: str, recipients: List[str], sender: str, plaintext: Optional[str] = None) -> Optional[str]:
        raise NotImplementedError


class ConsoleEmailer(Emailer):
    driver = "console"

    def send(self, subject: str, html: str, recipients: List[str], sender: str, plaintext: Optional[str] = None) -> Optional[str]:
        # Simulate a send. Avoid logging addresses or full HTML.
        preview_len = min(len(html), 200)
        masked = ",".join(mask_email(r) for r in recipients)
        logger.info(f"[console-email] to={masked} subject={subject} html_preview={html[:preview_len]!r}...")

        if plaintext:
            plaintext_preview_len = min(len(plaintext), 200)
            logger.info(f"[console-email] plaintext_preview={plaintext[:plaintext_preview_len]!r}...")

        # Synthetic message id for local debugging
        return f"MSG-LOCAL-{int(time.time()*1000)}"


def _build_mime(subject: str, html: str, recipients: List[str], sender: str, plaintext: Optional[str]):
    if plaintext:
        message = MIMEMultipart("alternative")
        message.attach(MIMEText(plaintext, "plain", "utf-8"))
        message.attach(MIMEText(html, "html", "utf-8"))
    else:
        message = MIMEText(html, "html", "utf-8")
    message["Subject"] = subject
    message["From"] = f"TimeSync <{sender}>"
    message["To"] = ", ".join(recipients)
    return message


class SmtpEmailer(Emailer):
    driver = "smtp"

    def __init__(self, host: str, port: int, username: str, password: str, use_tls: bool):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls

    def _deliver(self, sender: str, recipients: List[str], payload: str) -> None:
        with smtplib.SMTP(self.host, self.port) as server:
            if self.use_tls:
                server.starttls()
            if self.username:
                server.login(self.username, self.password)
            server.sendmail(sender, recipients, payload)

    def send(self, subject: str, html: str, recipients: List[str], sender: str, plaintext: Optional[str] = None) -> Optional[str]:
        payload = _build_mime(subject, html, recipients, sender, plaintext).as_string()

        last_exc: Exception | None = None
        for delay in BACKOFFS:
            try:
                self._deliver(sender, recipients, payload)
                return None
            except Exception as exc:
                last_exc = exc
                time.sleep(delay)
        # Final attempt without sleeping after
        try:
            self._deliver(sender, recipients, payload)
            return None
        except Exception as exc:
            last_exc = exc
        raise HTTPException(status_code=503, detail=f"SMTP send failed after retries: {last_exc}")


class SendgridEmailer(Emailer):
    driver = "sendgrid"

    url = "https://api.sendgrid.com/v3/mail/send"

    def __init__(self, api_key: str):
        self.api_key = api_key

    def _post(self, headers: dict, data: dict) -> httpx.Response:
        with httpx.Client(timeout=15) as client:
            return client.post(self.url, headers=headers, json=data)

    def send(self, subject: str, html: str, recipients: List[str], sender: str, plaintext: Optional[str] = None) -> Optional[str]:
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

        content = [{"type": "text/html", "value": html}]
        if plaintext:
            content.insert(0, {"type": "text/plain", "value": plaintext})

        data = {
            "personalizations": [{"to": [{"email": r} for r in recipients]}],
            "from": {"email": sender, "name": "TimeSync"},
            "subject": subject,
            "content": content,
        }
        last_error: str | None = None
        for attempt in range(len(BACKOFFS) + 1):
            try:
                resp = self._post(headers, data)
                if resp.status_code in (200, 202):
                    return resp.headers.get("X-Message-Id") or None
                last_error = f"{resp.status_code} {resp.text}"
            except Exception as exc:
                last_error = str(exc)
            if attempt < len(BACKOFFS):
                time.sleep(BACKOFFS[attempt])
        raise HTTPException(status_code=503, detail=f"SendGrid send failed after retries: {last_error}")


def select_emailer(config: Optional[AppConfig] = None) -> Emailer:
    cfg = config or load_config()
    driver = cfg.mail_driver
    if driver == "console":
        return ConsoleEmailer()
    if driver == "smtp":
        if not cfg.smtp_host or not cfg.smtp_port:
            raise HTTPException(status_code=503, detail="SMTP configuration missing: SMTP_HOST/SMTP_PORT required")
        return SmtpEmailer(
            host=cfg.smtp_host,
            port=cfg.smtp_port,
            username=cfg.smtp_username or "",
            password=cfg.smtp_password or "",
            use_tls=cfg.smtp_use_tls,
        )
    if driver == "sendgrid":
        if not cfg.sendgrid_api_key:
            raise HTTPException(status_code=503, detail="SENDGRID_API_KEY missing")
        return SendgridEmailer(api_key=cfg.sendgrid_api_key)
    raise HTTPException(status_code=400, detail=f"Unsupported MAIL_DRIVER: {driver}")
