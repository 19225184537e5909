import os
from typing import Optional

from pydantic import BaseModel


class AppConfig(BaseModel):
    mail_driver: str = "console"
    smtp_host: Optional[str] = None
    smtp_port: Optional[int] = None
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    sendgrid_api_key: Optional[str] = None
    default_sender: str = "noreply@timesync.app"
    include_plaintext: bool = True
    api_key: Optional[str] = None
    llm_enabled: bool = False
    openai_api_key: Optional[str] = None
    llm_model: str = "gpt-4o-mini"
    llm_timeout_ms: int = 8000
    meeting_store: str = "memory"
    meeting_store_path: str = "/tmp/timesync-meetings.json"
    base_url: str = "http://localhost:8000"


def load_config() -> AppConfig:
    smtp_port_str = os.getenv("SMTP_PORT")
    smtp_port = int(smtp_port_str) if smtp_port_str and smtp_port_str.isdigit() else None
    timeout_str = os.getenv("LLM_TIMEOUT_MS", "8000")
    llm_timeout_ms = int(timeout_str) if timeout_str.isdigit() else 8000
    return AppConfig(
        mail_driver=os.getenv("MAIL_DRIVER", "console").lower(),
        smtp_host=os.getenv("SMTP_HOST"),
        smtp_port=smtp_port,
        smtp_username=os.getenv("SMTP_USERNAME"),
        smtp_password=os.getenv("SMTP_PASSWORD"),
        smtp_use_tls=os.getenv("SMTP_USE_TLS", "true").lower() == "true",
        sendgrid_api_key=os.getenv("SENDGRID_API_KEY"),
        default_sender=os.getenv("DEFAULT_SENDER", "noreply@timesync.app"),
        include_plaintext=os.getenv("INCLUDE_PLAINTEXT", "true").lower() == "true",
        api_key=os.getenv("API_KEY"),
        llm_enabled=os.getenv("LLM_ENABLED", "false").lower() == "true",
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        llm_model=os.getenv("LLM_MODEL", "gpt-4o-mini"),
        llm_timeout_ms=llm_timeout_ms,
        meeting_store=os.getenv("MEETING_STORE", "memory").lower(),
        meeting_store_path=os.getenv("MEETING_STORE_PATH", "/tmp/timesync-meetings.json"),
        base_url=os.getenv("BASE_URL", "http://localhost:8000"),
    )
