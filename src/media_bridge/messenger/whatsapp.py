"""WhatsApp source adapter using neonize (whatsmeow bindings)."""

from __future__ import annotations

import asyncio
import base64
from pathlib import Path
from typing import Any

from media_bridge.config import WhatsAppConfig
from media_bridge.core.types import ADDRESS_SUFFIX, MediaKind
from media_bridge.log import get_logger
from media_bridge.messenger.base import SourceAdapter
from media_bridge.messenger.models import InboundMessageEvent, MediaPayload

logger = get_logger(__name__)

_USER_SERVER = "s.whatsapp.net"
_LID_SERVER = "lid"

# Message protobuf field -> media kind, checked in order
_MEDIA_FIELDS = (
    ("imageMessage", MediaKind.IMAGE),
    ("videoMessage", MediaKind.VIDEO),
    ("audioMessage", MediaKind.AUDIO),
    ("documentMessage", MediaKind.DOCUMENT),
    ("stickerMessage", MediaKind.STICKER),
)


def render_qr(data: str) -> None:
    """Print a pairing QR code to the terminal."""
    import qrcode

    qr = qrcode.QRCode(border=1)
    qr.add_data(data)
    qr.make(fit=True)
    qr.print_ascii(invert=True)


def _media_field(message: Any) -> tuple[str, MediaKind] | None:
    for field_name, kind in _MEDIA_FIELDS:
        if message.HasField(field_name):
            return field_name, kind
    return None


def _sender_id(jid: Any) -> str:
    if jid.Server == _USER_SERVER:
        return f"{jid.User}{ADDRESS_SUFFIX}"
    return f"{jid.User}@{jid.Server}"


def _chat_sender_id(source: Any) -> str:
    """Sender id of a chat, resolving LID-addressed direct chats to the phone JID."""
    chat = source.Chat
    if chat.Server == _LID_SERVER:
        alt = getattr(source, "SenderAlt", None)
        if alt is not None and alt.User and alt.Server == _USER_SERVER:
            return _sender_id(alt)
    return _sender_id(chat)


def _to_seconds(timestamp: int) -> int:
    # whatsmeow reports milliseconds
    return timestamp // 1000 if timestamp > 10**12 else timestamp


class WhatsAppSource(SourceAdapter):
    """Linked-device WhatsApp session that reports incoming media messages.

    The session is stored in a SQLite file so pairing by QR code is only needed
    once.
    """

    def __init__(self, config: WhatsAppConfig):
        super().__init__()
        self._config = config
        self._client: Any = None
        self._connect_task: asyncio.Task[Any] | None = None
        self._pending: set[asyncio.Task[Any]] = set()

    async def start(self) -> None:
        from neonize.aioze.client import NewAClient
        from neonize.aioze.events import (
            ConnectedEv,
            DisconnectedEv,
            LoggedOutEv,
            MessageEv,
            PairStatusEv,
        )

        # One client per session store; a restart replaces the previous one
        await self._close_client()

        Path(self._config.session_db).parent.mkdir(parents=True, exist_ok=True)
        self._client = NewAClient(self._config.session_db)

        self._client.event.qr(self._on_qr)
        self._client.event(ConnectedEv)(self._on_connected)
        self._client.event(PairStatusEv)(self._on_pair_status)
        self._client.event(LoggedOutEv)(self._on_logged_out)
        self._client.event(DisconnectedEv)(self._on_disconnected)
        self._client.event(MessageEv)(self._on_whatsapp_message)

        self._connect_task = asyncio.create_task(self._client.connect())
        self._connect_task.add_done_callback(self._on_connect_done)
        logger.info("whatsapp_connecting", session_db=self._config.session_db)

    async def stop(self) -> None:
        if await self._close_client():
            logger.info("whatsapp_stopped")

    async def _close_client(self) -> bool:
        if self._connect_task and not self._connect_task.done():
            self._connect_task.remove_done_callback(self._on_connect_done)
            self._connect_task.cancel()
        self._connect_task = None
        if self._client is None:
            return False
        client, self._client = self._client, None
        try:
            await client.disconnect()
        except Exception as e:
            logger.warning("whatsapp_disconnect_error", error=str(e))
        return True

    async def download_media(self, event: InboundMessageEvent) -> MediaPayload | None:
        message = event.raw.Message
        found = _media_field(message)
        if found is None or self._client is None:
            return None

        data: bytes = await self._client.download_any(message)
        if not data:
            return None

        media = getattr(message, found[0])
        filename = media.fileName if found[1] == MediaKind.DOCUMENT else None
        return MediaPayload(
            data=base64.b64encode(data).decode("ascii"),
            mime_type=media.mimetype or "application/octet-stream",
            filename=filename or None,
        )

    async def reply(self, event: InboundMessageEvent, text: str) -> None:
        if self._client is None:
            raise RuntimeError("WhatsApp client is not running")
        await self._client.reply_message(text, event.raw)

    async def _on_qr(self, client: Any, data: bytes) -> None:
        logger.info("whatsapp_qr_received", hint="Scan this QR code with your WhatsApp app")
        render_qr(data.decode() if isinstance(data, bytes) else str(data))

    async def _on_connected(self, client: Any, event: Any) -> None:
        logger.info("whatsapp_ready", phone=self._config.phone)
        logger.info("listening_for_media")

    async def _on_pair_status(self, client: Any, event: Any) -> None:
        if getattr(event, "Error", ""):
            logger.error("whatsapp_auth_failed", error=event.Error)
        else:
            logger.info("whatsapp_paired")

    async def _on_logged_out(self, client: Any, event: Any) -> None:
        logger.error("whatsapp_auth_failed", reason=str(event))

    async def _on_disconnected(self, client: Any, event: Any) -> None:
        # Events from a client that was already replaced or stopped
        if client is not None and client is not self._client:
            return
        await self._notify_disconnect(str(event) or "disconnected")

    def _on_connect_done(self, task: asyncio.Task[Any]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("whatsapp_connection_error", error=str(error))
            notify = asyncio.ensure_future(self._notify_disconnect(str(error)))
            self._pending.add(notify)
            notify.add_done_callback(self._on_notify_done)

    def _on_notify_done(self, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("whatsapp_disconnect_handler_error", error=str(task.exception()))

    async def _notify_disconnect(self, reason: str) -> None:
        logger.warning("whatsapp_disconnected", reason=reason)
        if self._disconnect_callback:
            await self._disconnect_callback(reason)

    async def _on_whatsapp_message(self, client: Any, message: Any) -> None:
        """Convert a neonize MessageEv and hand it to the registered callback."""
        if not self._message_callback:
            return

        info = message.Info
        if info.MessageSource.IsFromMe:
            return

        found = _media_field(message.Message)
        event = InboundMessageEvent(
            sender_id=_chat_sender_id(info.MessageSource),
            media_kind=found[1] if found else MediaKind.OTHER,
            timestamp=_to_seconds(int(info.Timestamp)),
            has_media=found is not None,
            raw=message,
        )

        try:
            await self._message_callback(event)
        except Exception as e:
            logger.error("whatsapp_handler_error", error=str(e), sender=event.sender_id)
