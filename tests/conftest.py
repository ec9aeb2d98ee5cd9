"""Shared fixtures: in-memory source and delivery adapters and a ready config."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from media_bridge.config import AppConfig, ForwardingSettings, TelegramConfig, WhatsAppConfig
from media_bridge.core.types import MediaKind
from media_bridge.messenger.base import DeliveryAdapter, SourceAdapter
from media_bridge.messenger.models import InboundMessageEvent, MediaPayload

TARGET_PHONE = "+15551234567"
TARGET_SENDER = "15551234567@c.us"


class FakeSource(SourceAdapter):
    """Source adapter that serves a fixed payload and records replies."""

    def __init__(self, payload: MediaPayload | None = None):
        super().__init__()
        self.payload = payload
        self.replies: list[str] = []
        self.downloads = 0
        self.start_mock = AsyncMock()
        self.stop_mock = AsyncMock()

    async def start(self) -> None:
        await self.start_mock()

    async def stop(self) -> None:
        await self.stop_mock()

    async def download_media(self, event):
        self.downloads += 1
        return self.payload

    async def reply(self, event, text):
        self.replies.append(text)


class FakeDelivery(DeliveryAdapter):
    """Delivery adapter recording every send in an AsyncMock per method."""

    def __init__(self) -> None:
        self.mocks = {
            name: AsyncMock()
            for name in ("start", "stop", "send_photo", "send_video", "send_audio", "send_document")
        }

    async def start(self) -> None:
        await self.mocks["start"]()

    async def stop(self) -> None:
        await self.mocks["stop"]()

    async def send_photo(self, data, **kwargs):
        await self.mocks["send_photo"](data, **kwargs)

    async def send_video(self, data, **kwargs):
        await self.mocks["send_video"](data, **kwargs)

    async def send_audio(self, data, **kwargs):
        await self.mocks["send_audio"](data, **kwargs)

    async def send_document(self, data, **kwargs):
        await self.mocks["send_document"](data, **kwargs)

    def send_count(self) -> int:
        return sum(
            mock.await_count
            for name, mock in self.mocks.items()
            if name.startswith("send_")
        )


def make_event(
    sender: str = TARGET_SENDER,
    kind: MediaKind = MediaKind.IMAGE,
    has_media: bool = True,
    timestamp: int = 1704207845,
) -> InboundMessageEvent:
    return InboundMessageEvent(
        sender_id=sender, media_kind=kind, timestamp=timestamp, has_media=has_media
    )


@pytest.fixture
def settings() -> ForwardingSettings:
    return ForwardingSettings(phone=TARGET_PHONE, retry_delay=0)


@pytest.fixture
def small_payload() -> MediaPayload:
    # "aGVsbG8=" is base64 for b"hello"
    return MediaPayload(data="aGVsbG8=", mime_type="image/jpeg", filename="holiday pic.jpg")


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        telegram=TelegramConfig(bot_token="123:abc", user_id="42"),
        whatsapp=WhatsAppConfig(phone=TARGET_PHONE, reconnect_delay=0),
        forwarding=ForwardingSettings(phone=TARGET_PHONE, retry_delay=0),
    )
