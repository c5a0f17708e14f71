import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./band_office.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class PortalConfig(BaseModel):
    """Connection settings for the community portal API."""
    portal_base_url: str = "https://tcnaux.ca"
    api_key: str = ""
    timeout_seconds: float = 15.0
    source: str = "band-office"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def url(self, path: str) -> str:
        return f"{self.portal_base_url.rstrip('/')}/{path.lstrip('/')}"


class SmsConfig(BaseModel):
    account_sid: Optional[str] = None
    auth_token: Optional[str] = None
    from_number: Optional[str] = None


class SmtpConfig(BaseModel):
    server: str = "smtp.gmail.com"
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    sender_email: Optional[str] = None


@lru_cache()
def get_portal_config() -> PortalConfig:
    return PortalConfig(
        portal_base_url=os.getenv("PORTAL_BASE_URL", "https://tcnaux.ca"),
        api_key=os.getenv("PORTAL_API_KEY", ""),
        timeout_seconds=float(os.getenv("PORTAL_TIMEOUT_SECONDS", 15)),
    )


@lru_cache()
def get_sms_config() -> SmsConfig:
    return SmsConfig(
        account_sid=os.getenv("TWILIO_ACCOUNT_SID"),
        auth_token=os.getenv("TWILIO_AUTH_TOKEN"),
        from_number=os.getenv("TWILIO_PHONE_NUMBER"),
    )


@lru_cache()
def get_smtp_config() -> SmtpConfig:
    username = os.getenv("SMTP_USERNAME")
    return SmtpConfig(
        server=os.getenv("SMTP_SERVER", "smtp.gmail.com"),
        port=int(os.getenv("SMTP_PORT", 587)),
        username=username,
        password=os.getenv("SMTP_PASSWORD"),
        sender_email=os.getenv("SENDER_EMAIL", username),
    )
