"""Telegram delivery adapter using python-telegram-bot v21+."""

from __future__ import annotations

from telegram import Bot, InputFile

from media_bridge.config import TelegramConfig
from media_bridge.core.media import MAX_CAPTION_LENGTH, estimate_size_mb
from media_bridge.log import get_logger
from media_bridge.messenger.base import DeliveryAdapter
from media_bridge.messenger.models import ForwardRequest

logger = get_logger(__name__)


class TelegramDelivery(DeliveryAdapter):
    """Sends forwarded media to one Telegram chat through the Bot API.

    No polling: the bridge never reads from Telegram, it only uploads.
    """

    def __init__(self, config: TelegramConfig, bot: Bot | None = None):
        self._config = config
        self._bot = bot

    @property
    def chat_id(self) -> str:
        return self._config.user_id

    async def start(self) -> None:
        if self._bot is None:
            self._bot = Bot(self._config.bot_token)
        await self._bot.initialize()
        logger.info("telegram_delivery_started", chat_id=self.chat_id)

    async def stop(self) -> None:
        if self._bot:
            await self._bot.shutdown()
            logger.info("telegram_delivery_stopped")

    def _require_bot(self) -> Bot:
        if self._bot is None:
            raise RuntimeError("Telegram delivery used before start()")
        return self._bot

    @staticmethod
    def _input_file(data: bytes, mime_type: str, filename: str) -> InputFile:
        upload = InputFile(data, filename=filename)
        if mime_type:
            upload.mimetype = mime_type
        return upload

    async def send_photo(self, data: bytes, *, mime_type: str, filename: str, caption: str) -> None:
        await self._require_bot().send_photo(
            chat_id=self.chat_id,
            photo=self._input_file(data, mime_type, filename),
            caption=caption[:MAX_CAPTION_LENGTH],
        )

    async def send_video(self, data: bytes, *, mime_type: str, filename: str, caption: str) -> None:
        await self._require_bot().send_video(
            chat_id=self.chat_id,
            video=self._input_file(data, mime_type, filename),
            caption=caption[:MAX_CAPTION_LENGTH],
        )

    async def send_audio(self, data: bytes, *, mime_type: str, filename: str, caption: str) -> None:
        await self._require_bot().send_audio(
            chat_id=self.chat_id,
            audio=self._input_file(data, mime_type, filename),
            caption=caption[:MAX_CAPTION_LENGTH],
        )

    async def send_document(
        self, data: bytes, *, mime_type: str, filename: str, caption: str
    ) -> None:
        await self._require_bot().send_document(
            chat_id=self.chat_id,
            document=self._input_file(data, mime_type, filename),
            caption=caption[:MAX_CAPTION_LENGTH],
        )

    async def send(self, request: ForwardRequest) -> None:
        logger.info(
            "sending_media",
            media_kind=str(request.media_kind),
            filename=request.filename,
            size_mb=estimate_size_mb(request.payload.data),
        )
        await super().send(request)
        logger.info("media_sent", media_kind=str(request.media_kind))
