"""CLI entry point for media-bridge."""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

from media_bridge.app import MediaBridgeApp
from media_bridge.config import AppConfig, ConfigError, load_config
from media_bridge.forwarding.policy import target_sender_id
from media_bridge.log import get_logger, setup_logging


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="media-bridge",
        description="Forward WhatsApp media from one contact to a Telegram chat",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (
        ("start", "Start the bridge"),
        ("config-check", "Validate configuration"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("-c", "--config", default="config.yaml", help="Path to optional YAML config")
        sub.add_argument("-e", "--env", default=".env", help="Path to .env file")

    args = parser.parse_args(argv)

    if args.command is None:
        # Default to start
        args.command = "start"
        args.config = "config.yaml"
        args.env = ".env"

    config = _load_or_exit(args.config, args.env)
    if args.command == "config-check":
        _check_config(config, args.config)
    elif args.command == "start":
        _run(config)


def _load_or_exit(config_path: str, env_path: str) -> AppConfig:
    try:
        return load_config(config_path, env_path)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


def _check_config(config: AppConfig, config_path: str) -> None:
    """Print a configuration summary."""
    print(f"Configuration valid ({config_path} or environment)")
    print(f"  Telegram user id : {config.telegram.user_id}")
    print(f"  WhatsApp phone   : {config.whatsapp.phone} -> {target_sender_id(config.whatsapp.phone)}")
    if not config.whatsapp.phone_looks_valid:
        print("    warning: expected '+' followed by digits (set WHATSAPP_PHONE)")
    print(f"  Session database : {config.whatsapp.session_db}")
    print(f"  Max file size    : {config.forwarding.max_file_size_mb}MB")
    print(
        f"  Retries          : {config.forwarding.retry_attempts} "
        f"x {config.forwarding.retry_delay}s"
    )


def _run(config: AppConfig) -> None:
    """Start the application and block until SIGINT/SIGTERM."""
    setup_logging(config.log_level, json_output=config.log_json)
    logger = get_logger(__name__)

    async def _async_main() -> None:
        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()

        def _signal_handler() -> None:
            stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, _signal_handler)
            except NotImplementedError:
                # Windows doesn't support add_signal_handler
                signal.signal(sig, lambda s, f: loop.call_soon_threadsafe(_signal_handler))

        app = MediaBridgeApp(config)
        await app.start()
        await stop_event.wait()
        logger.info("shutting_down")
        await app.stop()

    asyncio.run(_async_main())
    sys.exit(0)


if __name__ == "__main__":
    main()
