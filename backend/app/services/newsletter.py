"""
Newsletter bulk sender.

Recipients are sent in fixed-size batches: every send in a batch runs
concurrently, the batch settles completely, then a pause precedes the next
batch. Each recipient gets exactly one delivery attempt and lands in either
``sent`` or ``failed``. Failures that look permanent are reported as bounces
through the caller's ``on_bounce`` callback.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field, asdict
from typing import Awaitable, Callable, Optional, Protocol, Sequence, Union

from app.core.config import settings
from app.core.errors import ServiceUnavailable
from app.services.email import EmailTransportError, get_email_provider, render_newsletter_html

logger = logging.getLogger(__name__)

# Fallback when the provider gives no SMTP code. Provider-specific and
# fragile; the structured 5xx check in is_bounce() takes precedence.
BOUNCE_PATTERNS = ("bounce", "invalid", "not found")

BounceCallback = Callable[[str, str], Union[None, Awaitable[None]]]


class DeliveryProvider(Protocol):
    def is_configured(self) -> bool: ...

    def send(self, to_email: str, subject: str, html_body: str, text_body: Optional[str] = None) -> None: ...


@dataclass
class NewsletterMessage:
    subject: str
    body: str


@dataclass
class BulkSendResult:
    success: bool = True
    sent: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    bounced: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def is_bounce(exc: BaseException) -> bool:
    """Permanent delivery failure: SMTP 5xx, else a bounce-looking message.

    Transport failures (bad SMTP login, refused sender, connection errors)
    are never bounces, whatever their reply text says.
    """
    if isinstance(exc, EmailTransportError):
        return False
    if getattr(exc, "permanent", False):
        return True
    reason = str(exc).lower()
    return any(p in reason for p in BOUNCE_PATTERNS)


def _batches(items: Sequence[str], size: int):
    for i in range(0, len(items), size):
        yield items[i:i + size]


async def send_newsletter(
    recipients: Sequence[str],
    message: NewsletterMessage,
    on_bounce: Optional[BounceCallback] = None,
    *,
    provider: Optional[DeliveryProvider] = None,
    batch_size: Optional[int] = None,
    batch_delay_ms: Optional[int] = None,
) -> BulkSendResult:
    """
    Send ``message`` to every address in ``recipients``.

    Raises ServiceUnavailable before any send when no delivery provider is
    configured. Per-recipient failures never raise; they are collected in the
    returned result.
    """
    if provider is None:
        provider = get_email_provider()
    if provider is None or not provider.is_configured():
        raise ServiceUnavailable("Email service is not configured. Please set the SMTP_* settings.")

    size = batch_size or settings.NEWSLETTER_BATCH_SIZE
    if size < 1:
        raise ValueError("batch_size must be >= 1")
    delay = (settings.NEWSLETTER_BATCH_DELAY_MS if batch_delay_ms is None else batch_delay_ms) / 1000.0

    result = BulkSendResult()
    recipients = list(recipients)

    async def _send_one(email: str) -> None:
        try:
            await asyncio.to_thread(
                provider.send,
                email,
                message.subject,
                render_newsletter_html(message.body, email),
            )
        except Exception as e:
            reason = str(e) or type(e).__name__
            result.failed += 1
            result.errors.append(f"Failed to send to {email}: {reason}")
            if is_bounce(e):
                result.bounced.append(email)
                await _notify_bounce(on_bounce, email, reason)
        else:
            result.sent += 1

    total_batches = (len(recipients) + size - 1) // size
    for n, batch in enumerate(_batches(recipients, size), start=1):
        await asyncio.gather(*(_send_one(email) for email in batch))
        logger.info("Newsletter batch %d/%d done (sent=%d failed=%d)", n, total_batches, result.sent, result.failed)
        if n < total_batches and delay > 0:
            await asyncio.sleep(delay)

    result.success = result.failed == 0
    logger.info(
        "Newsletter '%s' finished: %d sent, %d failed, %d bounced",
        message.subject, result.sent, result.failed, len(result.bounced),
    )
    return result


async def _notify_bounce(on_bounce: Optional[BounceCallback], email: str, reason: str) -> None:
    if on_bounce is None:
        return
    try:
        outcome = on_bounce(email, reason)
        if inspect.isawaitable(outcome):
            await outcome
    except Exception as e:
        logger.error("Bounce callback failed for %s: %s", email, e)
