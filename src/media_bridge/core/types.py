"""Shared types and enumerations."""

from __future__ import annotations

from enum import StrEnum

# WhatsApp addressing suffix for one-to-one chats
ADDRESS_SUFFIX = "@c.us"


class MediaKind(StrEnum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    STICKER = "sticker"
    OTHER = "other"


SUPPORTED_MEDIA_KINDS = frozenset(
    {
        MediaKind.IMAGE,
        MediaKind.VIDEO,
        MediaKind.AUDIO,
        MediaKind.DOCUMENT,
        MediaKind.STICKER,
    }
)


class ForwardOutcome(StrEnum):
    """Terminal state of one forward."""

    ACKNOWLEDGED = "acknowledged"
    REJECTED = "rejected"
    FAILED = "failed"
