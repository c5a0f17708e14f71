import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

from app.core.config import SmtpConfig


class EmailNotConfigured(RuntimeError):
    pass


def send_email(config: SmtpConfig, to_email: str, subject: str, body: str, html: bool = False) -> str:
    """Send one message over SMTP with STARTTLS and return its Message-ID."""
    if not config.username or not config.password:
        raise EmailNotConfigured("SMTP credentials not configured")

    sender = config.sender_email or config.username
    msg = MIMEMultipart('alternative')
    msg['Subject'] = subject
    msg['From'] = f"Band Office <{sender}>"
    msg['To'] = to_email
    msg['Message-ID'] = make_msgid()
    msg.attach(MIMEText(body, 'html' if html else 'plain'))

    with smtplib.SMTP(config.server, config.port) as server:
        server.starttls()
        server.login(config.username, config.password)
        server.sendmail(sender, to_email, msg.as_string())

    return msg['Message-ID']
