"""Message models shared by the source and destination adapters."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Optional

from media_bridge.core.types import MediaKind


@dataclass(frozen=True, slots=True)
class InboundMessageEvent:
    """One incoming WhatsApp message, as seen by the forwarding policy."""

    sender_id: str  # e.g. "15551234567@c.us"
    media_kind: MediaKind
    timestamp: int  # seconds since epoch
    has_media: bool
    # Platform message object, only meaningful to the adapter that produced it
    raw: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class MediaPayload:
    """Downloaded attachment, base64 encoded."""

    data: str
    mime_type: str
    filename: Optional[str] = None

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.data)


@dataclass(frozen=True, slots=True)
class ForwardRequest:
    payload: MediaPayload
    filename: str
    caption: str
    media_kind: MediaKind
