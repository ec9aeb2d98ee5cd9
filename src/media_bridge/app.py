"""Application orchestrator - wires the adapters and the policy, manages lifecycle."""

from __future__ import annotations

import asyncio
from typing import Any

from media_bridge.config import AppConfig
from media_bridge.forwarding.policy import ForwardingPolicy
from media_bridge.log import get_logger
from media_bridge.messenger.base import DeliveryAdapter, SourceAdapter

logger = get_logger(__name__)


class MediaBridgeApp:
    """Top-level application orchestrator."""

    def __init__(
        self,
        config: AppConfig,
        source: SourceAdapter | None = None,
        delivery: DeliveryAdapter | None = None,
    ):
        self.config = config
        self.source = source or self._create_source()
        self.delivery = delivery or self._create_delivery()
        self.policy = ForwardingPolicy(self.source, self.delivery, config.forwarding)
        self._reconnect_task: asyncio.Task[Any] | None = None

    async def start(self) -> None:
        """Initialize and start all components."""
        # 1. Telegram side; failures here are fatal
        await self.delivery.start()

        # 2. WhatsApp side
        self.source.on_message(self.policy.handle)
        self.source.on_disconnect(self._on_disconnected)
        await self._start_source("whatsapp_init_failed")

        logger.info(
            "bridge_started",
            telegram_user_id=self.config.telegram.user_id,
            whatsapp_phone=self.config.whatsapp.phone,
        )

    async def stop(self) -> None:
        """Gracefully shut down; in-flight forwards are abandoned."""
        if self._reconnect_task and not self._reconnect_task.done():
            self._reconnect_task.cancel()
        try:
            await self.source.stop()
        except Exception as e:
            logger.error("whatsapp_stop_error", error=str(e))
        try:
            await self.delivery.stop()
        except Exception as e:
            logger.error("telegram_stop_error", error=str(e))
        logger.info("bridge_stopped")

    async def _start_source(self, failure_event: str) -> None:
        try:
            await self.source.start()
        except Exception as e:
            # Not fatal: the disconnect path may still bring the session back
            logger.error(failure_event, error=str(e), exc_info=True)

    async def _on_disconnected(self, reason: str) -> None:
        logger.info("whatsapp_disconnected", reason=reason)
        if self._reconnect_task and not self._reconnect_task.done():
            return
        self._reconnect_task = asyncio.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        await asyncio.sleep(self.config.whatsapp.reconnect_delay)
        logger.info("whatsapp_restarting")
        await self._start_source("whatsapp_restart_failed")

    def _create_source(self) -> SourceAdapter:
        from media_bridge.messenger.whatsapp import WhatsAppSource

        return WhatsAppSource(self.config.whatsapp)

    def _create_delivery(self) -> DeliveryAdapter:
        from media_bridge.messenger.telegram import TelegramDelivery

        return TelegramDelivery(self.config.telegram)
