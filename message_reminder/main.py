"""Main entry point - orchestrates all components."""

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

import yaml
import uvicorn

from .notifier import create_notifier
from .registry import ReminderRegistry
from .scheduler import ReminderScheduler
from .server import create_app
from .store import DEFAULT_STORE_KEY, create_store
from .telegram_bot import TelegramBot

logger = logging.getLogger(__name__)


def load_config(config_path: str = "config.yaml") -> dict:
    """Load configuration from YAML file."""
    path = Path(config_path)

    if not path.exists():
        logger.warning(f"Config file not found: {config_path}, using defaults")
        return {}

    with open(path) as f:
        return yaml.safe_load(f) or {}


class ReminderApp:
    """Main application orchestrator."""

    def __init__(self, config: dict):
        self.config = config

        # Server config
        self.host = config.get("server", {}).get("host", "127.0.0.1")
        self.port = config.get("server", {}).get("port", 8421)

        # Telegram bot (optional)
        telegram_config = config.get("telegram", {})
        self.telegram_bot: Optional[TelegramBot] = None

        if telegram_config.get("token"):
            self.telegram_bot = TelegramBot(
                token=telegram_config["token"],
                default_chat_id=telegram_config.get("chat_id"),
                allowed_chat_ids=telegram_config.get("allowed_chat_ids"),
                allowed_user_ids=telegram_config.get("allowed_user_ids"),
            )

        self.notifier = create_notifier(config, telegram_bot=self.telegram_bot)

        self.store = create_store(config)
        self.registry = ReminderRegistry(
            store=self.store,
            notifier=self.notifier,
            store_key=config.get("store", {}).get("key", DEFAULT_STORE_KEY),
        )

        scheduler_config = config.get("scheduler", {})
        self.scheduler = ReminderScheduler(
            registry=self.registry,
            notifier=self.notifier,
            interval_seconds=scheduler_config.get("interval_seconds", 1.0),
            clear_on_teardown=scheduler_config.get("clear_on_teardown", True),
        )

        if self.telegram_bot:
            self._setup_telegram_handlers()

        self.app = create_app(scheduler=self.scheduler, config=config)

    def _setup_telegram_handlers(self):
        """Wire up Telegram bot commands to the scheduler."""
        self.telegram_bot.set_create_handler(self.scheduler.create)
        self.telegram_bot.set_partition_handler(self.scheduler.partition)
        self.telegram_bot.set_delete_handler(self.scheduler.delete)

    async def start(self):
        """Start all components and serve until shutdown."""
        logger.info("Starting message reminder service...")

        # Start Telegram bot first so catch-up notifications can be delivered
        if self.telegram_bot:
            await self.telegram_bot.start()

        await self.scheduler.init()

        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_level="info",
        )
        server = uvicorn.Server(config)

        logger.info(f"Starting server on http://{self.host}:{self.port}")
        await server.serve()

    async def stop(self):
        """Stop all components."""
        logger.info("Stopping message reminder service...")

        await self.scheduler.teardown()

        if self.telegram_bot:
            await self.telegram_bot.stop()

        self.store.close()
        logger.info("Shutdown complete")


async def main():
    """Main entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = load_config(os.environ.get("REMIND_CONFIG", "config.yaml"))

    app = ReminderApp(config)
    try:
        await app.start()
    finally:
        await app.stop()


def run():
    """Entry point for console script."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
