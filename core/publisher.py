import asyncio
import logging
import smtplib
import ssl
from datetime import date
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Optional
from core.config import Secrets
from core.formatter import ReportData, to_html, to_markdown

logger = logging.getLogger(__name__)

SMTP_TIMEOUT = 15


def save_digest(markdown: str, output_dir: str = ".", day: Optional[date] = None) -> Path:
    """Write the digest to digest-YYYY-MM-DD.md and return its path."""
    day = day or date.today()
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"digest-{day:%Y-%m-%d}.md"
    path.write_text(markdown, encoding="utf-8")
    logger.info(f"💾 Saved digest to {path}")
    return path


class EmailPublisher:
    def __init__(self, secrets: Secrets):
        """
        SMTP delivery of the digest.

        Gmail hosts and port 465 use implicit SSL; any other port
        upgrades the connection with STARTTLS.
        """
        self.secrets = secrets
        self.host = secrets.smtp_host
        self.port = 465 if "gmail.com" in secrets.smtp_host else secrets.smtp_port

    def is_configured(self) -> bool:
        return bool(self.secrets.email_to and self.secrets.email_from and self.secrets.email_password)

    def _build_message(self, recipient: str, sender: str, subject: str, body: str, plain: Optional[str]) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = sender
        message["To"] = recipient
        if plain:
            message.attach(MIMEText(plain, "plain", "utf-8"))
        message.attach(MIMEText(body, "html", "utf-8"))
        return message

    def _send_sync(self, message: MIMEMultipart, sender: str, recipient: str):
        user = self.secrets.email_from or sender
        if self.port == 465:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(self.host, self.port, timeout=SMTP_TIMEOUT, context=context) as server:
                server.login(user, self.secrets.email_password)
                server.sendmail(sender, [recipient], message.as_string())
        else:
            with smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT) as server:
                server.starttls(context=ssl.create_default_context())
                server.login(user, self.secrets.email_password)
                server.sendmail(sender, [recipient], message.as_string())

    async def send(self, recipient: str, sender: str, subject: str, body: str, plain: Optional[str] = None) -> bool:
        """
        Send one HTML email. Returns True on success; every failure is
        logged and reported as False.
        """
        if not (recipient and sender and self.secrets.email_password):
            logger.warning("Email credentials incomplete (EMAIL_TO / EMAIL_FROM / EMAIL_PASSWORD). Skipping send.")
            return False

        logger.info(f"📧 Sending email to {recipient} via {self.host}:{self.port}")
        message = self._build_message(recipient, sender, subject, body, plain)
        try:
            await asyncio.to_thread(self._send_sync, message, sender, recipient)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ Error sending email: {e}")
            return False

        logger.info(f"✅ Email sent to {recipient}")
        return True

    async def send_digest(self, report: ReportData, day: Optional[date] = None) -> bool:
        day = day or date.today()
        return await self.send(
            recipient=self.secrets.email_to,
            sender=self.secrets.email_from,
            subject=f"{report.title} - {day:%Y-%m-%d}",
            body=to_html(report),
            plain=to_markdown(report),
        )
