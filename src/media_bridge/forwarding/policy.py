"""Forwarding policy: decides what happens to each incoming WhatsApp message."""

from __future__ import annotations

from datetime import tzinfo

from media_bridge.config import ForwardingSettings
from media_bridge.core.media import build_caption, estimate_size_mb, sanitize_filename
from media_bridge.core.retry import with_retry
from media_bridge.core.types import ADDRESS_SUFFIX, SUPPORTED_MEDIA_KINDS, ForwardOutcome
from media_bridge.log import get_logger
from media_bridge.messenger.base import DeliveryAdapter, SourceAdapter
from media_bridge.messenger.models import ForwardRequest, InboundMessageEvent

logger = get_logger(__name__)

REPLY_DOWNLOAD_ERROR = "❌ Error downloading media."
REPLY_PROCESSING_ERROR = "❌ Error processing media."
REPLY_DELIVERED = "✅ Media received and sent to Telegram."


def target_sender_id(phone: str) -> str:
    """WhatsApp sender id for ``phone`` ("+15551234567" -> "15551234567@c.us")."""
    return f"{phone.removeprefix('+')}{ADDRESS_SUFFIX}"


class ForwardingPolicy:
    """Filter -> download -> validate -> prepare -> deliver -> acknowledge.

    Only messages from the configured phone carrying a supported attachment are
    forwarded. Every per-message failure ends here with at most one reply in the
    WhatsApp conversation; nothing is raised back to the source adapter.
    """

    def __init__(
        self,
        source: SourceAdapter,
        delivery: DeliveryAdapter,
        settings: ForwardingSettings,
        tz: tzinfo | None = None,
    ):
        self._source = source
        self._delivery = delivery
        self._settings = settings
        self._tz = tz
        self._target = target_sender_id(settings.phone)

    @property
    def target(self) -> str:
        return self._target

    async def handle(self, event: InboundMessageEvent) -> ForwardOutcome:
        """Process one incoming message end-to-end and return its terminal state."""
        if event.sender_id != self._target:
            logger.info(
                "message_skipped",
                sender=event.sender_id,
                expected=self._settings.phone,
            )
            return ForwardOutcome.REJECTED

        # Unsupported messages from the target are dropped without an info line
        if not event.has_media or event.media_kind not in SUPPORTED_MEDIA_KINDS:
            logger.debug("message_not_media", media_kind=str(event.media_kind))
            return ForwardOutcome.REJECTED

        logger.info("media_received", sender=event.sender_id, media_kind=str(event.media_kind))

        try:
            payload = await self._source.download_media(event)
            if payload is None:
                logger.error("media_download_failed", sender=event.sender_id)
                await self._reply(event, REPLY_DOWNLOAD_ERROR)
                return ForwardOutcome.FAILED

            size_mb = estimate_size_mb(payload.data)
            limit_mb = self._settings.max_file_size_mb
            if size_mb > limit_mb:
                logger.error("media_too_large", size_mb=size_mb, limit_mb=limit_mb)
                await self._reply(
                    event,
                    f"❌ File is too large ({size_mb}MB). Maximum allowed is {limit_mb}MB.",
                )
                return ForwardOutcome.FAILED

            request = ForwardRequest(
                payload=payload,
                filename=sanitize_filename(payload.filename),
                caption=build_caption(event.sender_id, event.timestamp, self._tz),
                media_kind=event.media_kind,
            )

            await with_retry(
                lambda: self._delivery.send(request),
                attempts=self._settings.retry_attempts,
                delay=self._settings.retry_delay,
            )
        except Exception as e:
            logger.error(
                "media_forward_failed",
                error=str(e),
                media_kind=str(event.media_kind),
                sender=event.sender_id,
                exc_info=True,
            )
            await self._reply(event, REPLY_PROCESSING_ERROR)
            return ForwardOutcome.FAILED

        await self._reply(event, REPLY_DELIVERED)
        return ForwardOutcome.ACKNOWLEDGED

    async def _reply(self, event: InboundMessageEvent, text: str) -> None:
        try:
            await self._source.reply(event, text)
        except Exception as e:
            logger.warning("reply_failed", sender=event.sender_id, error=str(e))
