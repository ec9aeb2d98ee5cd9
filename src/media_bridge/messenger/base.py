"""Abstract source and delivery adapter interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from media_bridge.core.types import MediaKind
from media_bridge.messenger.models import ForwardRequest, InboundMessageEvent, MediaPayload

_DELIVERY_METHODS = {
    MediaKind.IMAGE: "send_photo",
    MediaKind.VIDEO: "send_video",
    MediaKind.AUDIO: "send_audio",
}


def delivery_method_for(kind: MediaKind) -> str:
    """Name of the DeliveryAdapter method used for ``kind``."""
    return _DELIVERY_METHODS.get(kind, "send_document")


class SourceAdapter(ABC):
    """Platform that inbound media is read from.

    The adapter owns its session (pairing, reconnects inside the library) and
    reports each incoming message through the ``on_message`` callback.
    """

    def __init__(self) -> None:
        self._message_callback: Callable[[InboundMessageEvent], Awaitable[Any]] | None = None
        self._disconnect_callback: Callable[[str], Awaitable[None]] | None = None

    @abstractmethod
    async def start(self) -> None:
        """Connect to the platform and begin receiving messages."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Gracefully disconnect."""
        ...

    @abstractmethod
    async def download_media(self, event: InboundMessageEvent) -> MediaPayload | None:
        """Fetch the attachment of ``event``; ``None`` when nothing could be downloaded."""
        ...

    @abstractmethod
    async def reply(self, event: InboundMessageEvent, text: str) -> None:
        """Answer in the conversation ``event`` came from."""
        ...

    def on_message(self, callback: Callable[[InboundMessageEvent], Awaitable[Any]]) -> None:
        """Register the callback invoked for every incoming message."""
        self._message_callback = callback

    def on_disconnect(self, callback: Callable[[str], Awaitable[None]]) -> None:
        """Register the callback invoked with the reason when the session drops."""
        self._disconnect_callback = callback


class DeliveryAdapter(ABC):
    """Destination that media is forwarded to.

    Every send method targets the single configured destination and must raise
    on transport failure so the caller can retry.
    """

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @abstractmethod
    async def send_photo(self, data: bytes, *, mime_type: str, filename: str, caption: str) -> None:
        ...

    @abstractmethod
    async def send_video(self, data: bytes, *, mime_type: str, filename: str, caption: str) -> None:
        ...

    @abstractmethod
    async def send_audio(self, data: bytes, *, mime_type: str, filename: str, caption: str) -> None:
        ...

    @abstractmethod
    async def send_document(
        self, data: bytes, *, mime_type: str, filename: str, caption: str
    ) -> None:
        ...

    async def send(self, request: ForwardRequest) -> None:
        """Deliver ``request`` with the send method matching its media kind."""
        method = getattr(self, delivery_method_for(request.media_kind))
        await method(
            request.payload.raw_bytes(),
            mime_type=request.payload.mime_type,
            filename=request.filename,
            caption=request.caption,
        )
