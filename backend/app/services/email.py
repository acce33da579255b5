"""
Email service: SMTP delivery plus the site's transactional templates.

Uses the SMTP settings from app.core.config.settings. Transactional helpers
log a warning and skip when SMTP is not configured; the newsletter sender
treats a missing provider as fatal (see app.services.newsletter).
"""

import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import formataddr
from typing import Optional
from urllib.parse import quote

from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """A single message could not be delivered to its recipient.

    ``smtp_code`` is only set when the server refused the recipient address
    itself.
    """

    def __init__(self, message: str, smtp_code: Optional[int] = None):
        self.smtp_code = smtp_code
        super().__init__(message)

    @property
    def permanent(self) -> bool:
        # 5xx replies are permanent failures (RFC 5321 §4.2.1)
        return self.smtp_code is not None and 500 <= self.smtp_code < 600


class EmailTransportError(EmailDeliveryError):
    """A failure unrelated to the recipient address: connection, login,
    sender or message refusal."""

    @property
    def permanent(self) -> bool:
        return False


class SmtpProvider:
    """Blocking SMTP transport. One connection per message."""

    def __init__(
        self,
        server: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        from_address: str = "",
        from_name: str = "",
        timeout: float = 30.0,
    ):
        self.server = server
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_address = from_address or username
        self.from_name = from_name
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "SmtpProvider":
        return cls(
            server=settings.SMTP_SERVER,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
            from_address=settings.EMAIL_FROM_ADDRESS,
            from_name=settings.EMAIL_FROM_NAME,
        )

    def is_configured(self) -> bool:
        return bool(self.server and self.from_address)

    def send(self, to_email: str, subject: str, html_body: str, text_body: Optional[str] = None) -> None:
        """Send one message. Raises EmailDeliveryError on any failure."""
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.from_name, self.from_address))
        msg["To"] = to_email
        if text_body:
            msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        try:
            with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as server:
                server.ehlo()
                if self.use_tls:
                    server.starttls()
                    server.ehlo()
                if self.username:
                    server.login(self.username, self.password)
                server.sendmail(self.from_address, [to_email], msg.as_string())
        except smtplib.SMTPRecipientsRefused as e:
            code, reply = e.recipients.get(to_email, (None, b"recipient refused"))
            raise EmailDeliveryError(f"{code} {_decode(reply)}".strip(), smtp_code=code) from e
        except smtplib.SMTPDataError as e:
            reply = _decode(e.smtp_error)
            # Some servers only reject the mailbox after DATA; trust the code when the reply names it
            if to_email.lower() in reply.lower():
                raise EmailDeliveryError(f"{e.smtp_code} {reply}", smtp_code=e.smtp_code) from e
            raise EmailTransportError(f"{e.smtp_code} {reply}") from e
        except smtplib.SMTPResponseException as e:
            # Auth, sender refused, HELO/STARTTLS: account or server problems, not the recipient
            raise EmailTransportError(f"{e.smtp_code} {_decode(e.smtp_error)}") from e
        except (smtplib.SMTPException, OSError) as e:
            raise EmailTransportError(str(e) or type(e).__name__) from e


def _decode(reply) -> str:
    if isinstance(reply, bytes):
        return reply.decode("utf-8", errors="replace")
    return str(reply)


def get_email_provider() -> Optional[SmtpProvider]:
    """The configured SMTP provider, or None when SMTP is not set up."""
    provider = SmtpProvider.from_settings()
    return provider if provider.is_configured() else None


def is_email_service_available() -> bool:
    return get_email_provider() is not None


def unsubscribe_url(email: str) -> str:
    return f"{settings.FRONTEND_URL}/unsubscribe?email={quote(email, safe='')}"


# ─── Templates ───

def render_newsletter_html(content: str, subscriber_email: str) -> str:
    return f"""
    <div style="font-family: system-ui, -apple-system, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
      <div style="margin-bottom: 30px;">
        <h1 style="color: #000; margin-bottom: 10px;">{settings.APP_NAME}</h1>
      </div>

      <div style="color: #333; line-height: 1.6;">
        {content}
      </div>

      <hr style="border: none; border-top: 1px solid #eee; margin: 40px 0 20px;" />

      <div style="color: #999; font-size: 12px; text-align: center;">
        <p style="margin-bottom: 10px;">
          You're receiving this email because you subscribed to {settings.APP_NAME} updates.
        </p>
        <p>
          <a href="{unsubscribe_url(subscriber_email)}" style="color: #999; text-decoration: underline;">Unsubscribe</a>
        </p>
      </div>
    </div>
    """


def send_welcome_email(to_email: str) -> bool:
    """
    Send the newsletter welcome message.

    Returns True if sent, False if SMTP is not configured or delivery failed.
    Meant to run detached from the request (see app.core.tasks).
    """
    provider = get_email_provider()
    if provider is None:
        logger.warning("SMTP not configured, skipping welcome email to %s", to_email)
        return False

    subject = f"Welcome to {settings.APP_NAME} Newsletter"

    html_body = f"""
    <div style="font-family: system-ui, -apple-system, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
      <h1 style="color: #000; margin-bottom: 20px;">Welcome to {settings.APP_NAME}!</h1>
      <p style="color: #666; line-height: 1.6; margin-bottom: 15px;">
        Thanks for subscribing to our newsletter. You'll receive the latest insights on AI automation,
        industry trends, and expert tips to help you transform your business.
      </p>
      <p style="color: #666; line-height: 1.6; margin-bottom: 15px;">
        We're excited to have you in our community!
      </p>
      <hr style="border: none; border-top: 1px solid #eee; margin: 30px 0;" />
      <p style="color: #999; font-size: 12px;">
        If you'd like to unsubscribe, <a href="{unsubscribe_url(to_email)}" style="color: #999;">click here</a>.
      </p>
    </div>
    """

    text_body = f"""
Welcome to {settings.APP_NAME}!

Thanks for subscribing to our newsletter.

Unsubscribe: {unsubscribe_url(to_email)}
    """.strip()

    try:
        provider.send(to_email, subject, html_body, text_body)
        logger.info("Welcome email sent to %s", to_email)
        return True
    except EmailDeliveryError as e:
        logger.error("Failed to send welcome email to %s: %s", to_email, e)
        return False


def send_password_reset_email(to_email: str, username: str, reset_link: str) -> None:
    """
    Send a password reset email with a time-limited, single-use link.

    Raises EmailDeliveryError when delivery fails so the caller can log it.
    """
    provider = get_email_provider()
    if provider is None:
        logger.warning("SMTP not configured, skipping password reset email to %s", to_email)
        return

    ttl = settings.RESET_TOKEN_TTL_MINUTES
    subject = f"Reset Your Admin Password - {settings.APP_NAME}"

    html_body = f"""
    <div style="font-family: system-ui, -apple-system, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
      <h1 style="color: #000; margin-bottom: 20px;">Reset Your Password</h1>
      <p style="color: #666; line-height: 1.6; margin-bottom: 15px;">
        Hi <strong>{username}</strong>, you requested to reset your admin password.
        Click the button below to create a new password:
      </p>
      <div style="text-align: center; margin: 30px 0;">
        <a href="{reset_link}" style="display: inline-block; background-color: #f97316; color: white; padding: 12px 32px; text-decoration: none; border-radius: 6px; font-weight: 600;">
          Reset Password
        </a>
      </div>
      <p style="color: #666; line-height: 1.6; margin-bottom: 15px;">
        Or copy and paste this link into your browser:
      </p>
      <p style="color: #999; font-size: 14px; word-break: break-all; background: #f5f5f5; padding: 10px; border-radius: 4px;">
        {reset_link}
      </p>
      <p style="color: #666; line-height: 1.6; margin-top: 30px;">
        This link will expire in {ttl} minutes. If you didn't request this reset, you can safely ignore this email.
      </p>
    </div>
    """

    text_body = f"""
Password Reset Request for {settings.APP_NAME}

Hi {username},

Use the link below to reset your admin password (expires in {ttl} minutes):

{reset_link}

If you didn't request this, you can safely ignore this email.
    """.strip()

    provider.send(to_email, subject, html_body, text_body)
    logger.info("Password reset email sent to %s (user %s)", to_email, username)
