from fastapi import Depends

from app.core.config import PortalConfig, SmsConfig, SmtpConfig, get_portal_config, get_sms_config, get_smtp_config
from app.services.messaging_service import SmtpEmailSender, TwilioSmsSender
from app.services.portal_client import PortalClient


def get_portal_client(config: PortalConfig = Depends(get_portal_config)) -> PortalClient:
    return PortalClient(config)


def get_sms_sender(config: SmsConfig = Depends(get_sms_config)) -> TwilioSmsSender:
    return TwilioSmsSender(config)


def get_email_sender(config: SmtpConfig = Depends(get_smtp_config)) -> SmtpEmailSender:
    return SmtpEmailSender(config)
