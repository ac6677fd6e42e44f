"""
Outbound email for candidate notifications.

A single process-wide `Mailer` is created at startup (`init_mailer`) and closed at
shutdown (`shutdown_mailer`). When SMTP settings are missing the mailer is built in a
disabled state: it never opens a connection and every send raises NotifyError, so the
caller can report the failure without the process crashing.

Env vars:
  SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS, SMTP_FROM (or MAIL_FROM), SMTP_TLS
"""
import html
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

from .. import config
from ..utils.error_handlers import NotifyError, get_error_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SMTPSettings:
    host: str
    port: int
    user: str
    password: str
    mail_from: str
    use_tls: bool = True
    timeout_s: float = 15.0

    @property
    def complete(self) -> bool:
        return bool(self.host and self.user and self.password and self.mail_from)

    @classmethod
    def from_config(cls) -> "SMTPSettings":
        return cls(
            host=config.SMTP_HOST,
            port=config.SMTP_PORT,
            user=config.SMTP_USER,
            password=config.SMTP_PASS,
            mail_from=config.SMTP_FROM,
            use_tls=config.SMTP_TLS,
            timeout_s=config.SMTP_TIMEOUT_S,
        )


@dataclass(frozen=True)
class NotificationResult:
    status: str  # sent | failed | disabled
    detail: str | None = None

    def as_dict(self) -> dict:
        return {"status": self.status, "detail": self.detail}


class Mailer:
    def __init__(self, settings: SMTPSettings | None):
        self.settings = settings if settings is not None and settings.complete else None
        if self.settings is None:
            logger.error("SMTP configuration missing (SMTP_HOST/SMTP_USER/SMTP_PASS/SMTP_FROM). Emails will NOT be sent.")

    @property
    def enabled(self) -> bool:
        return self.settings is not None

    def send(self, *, to: str, subject: str, text: str, html_body: str | None = None) -> None:
        if not to:
            raise NotifyError("Missing recipient address")
        if self.settings is None:
            raise NotifyError(get_error_message("email_not_configured"), details={"reason": "disabled"})

        s = self.settings
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = s.mail_from
        msg["To"] = to
        msg.set_content(text)
        if html_body:
            msg.add_alternative(html_body, subtype="html")

        try:
            if s.port == 465:
                smtp = smtplib.SMTP_SSL(s.host, s.port, timeout=s.timeout_s)
            else:
                smtp = smtplib.SMTP(s.host, s.port, timeout=s.timeout_s)
            with smtp:
                smtp.ehlo()
                if s.use_tls and s.port != 465:
                    smtp.starttls()
                    smtp.ehlo()
                smtp.login(s.user, s.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP email error sending to %s: %s: %s", to, type(e).__name__, e)
            raise NotifyError(get_error_message("email_failed"), details={"reason": type(e).__name__})
        logger.info("Email sent to %s (%s)", to, subject)

    def close(self) -> None:
        # Connections are per-message; nothing is held open between sends.
        self.settings = None


_mailer: Mailer | None = None


def init_mailer(mailer: Mailer | None = None) -> Mailer:
    global _mailer
    _mailer = mailer if mailer is not None else Mailer(SMTPSettings.from_config())
    return _mailer


def get_mailer() -> Mailer:
    """FastAPI dependency; lazily builds a mailer if startup did not run (e.g. tests)."""
    if _mailer is None:
        return init_mailer()
    return _mailer


def shutdown_mailer() -> None:
    global _mailer
    if _mailer is not None:
        _mailer.close()
    _mailer = None


def deliver(mailer: Mailer, *, to: str, subject: str, text: str, html_body: str | None = None) -> NotificationResult:
    """Best-effort send: failures are logged and returned, never raised."""
    try:
        mailer.send(to=to, subject=subject, text=text, html_body=html_body)
    except NotifyError as e:
        status = "disabled" if e.details.get("reason") == "disabled" else "failed"
        logger.warning("Notification to %s not delivered (%s): %s", to, status, e.message)
        return NotificationResult(status=status, detail=e.message)
    return NotificationResult(status="sent")


def _to_html(lines: list[str]) -> str:
    return "<p>" + "<br/>".join(html.escape(line) for line in lines) + "</p>"


def render_resume_received(*, candidate_name: str, position: str | None) -> tuple[str, str, str]:
    """Returns (subject, text, html) confirming a resume was received."""
    company = config.COMPANY_NAME
    role = (position or "").strip() or "an open position"
    lines = [
        f"Dear {candidate_name or 'Candidate'},",
        "",
        f"Thank you for your interest. We have received your resume for {role}.",
        "Our HR team will review it and get back to you.",
        "",
        "Regards,",
        company,
    ]
    return f"Resume received - {company}", "\n".join(lines), _to_html(lines)


def render_interview_scheduled(
    *,
    message: str,
    date: str,
    time: str,
    mode: str,
    link_or_location: str,
) -> tuple[str, str, str]:
    """Returns (subject, text, html) for an interview invitation."""
    company = config.COMPANY_NAME
    place_label = "Meeting Link" if mode.lower() == "online" else "Location"
    lines = [
        *message.split("\n"),
        "",
        f"Date: {date}",
        f"Time: {time}",
        f"Mode: {mode}",
        f"{place_label}: {link_or_location}",
        "",
        "Regards,",
        "HR Team",
        company,
    ]
    return f"Interview Schedule - {company}", "\n".join(lines), _to_html(lines)
