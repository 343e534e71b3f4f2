"""Telegram bot for setting and listing reminders."""

import logging
from typing import Optional, Callable, Awaitable

from telegram import Update, Bot
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
)

from .models import DelayUnit, Reminder, ReminderPartition, ms_to_iso

logger = logging.getLogger(__name__)


def parse_remind_args(args: list[str]) -> tuple[int, DelayUnit, str]:
    """
    Parse "/remind <amount> [unit] <message...>".

    The unit is optional and defaults to minutes, matching the
    reminder form's default selection.

    Returns:
        Tuple of (amount, unit, message)

    Raises:
        ValueError: If the arguments cannot be parsed
    """
    if len(args) < 2:
        raise ValueError("Usage: /remind <amount> [seconds|minutes|hours] <message>")

    try:
        amount = int(args[0])
    except ValueError:
        raise ValueError(f"Amount must be a whole number, got {args[0]!r}") from None

    rest = args[1:]
    unit = DelayUnit.MINUTES
    try:
        unit = DelayUnit.parse(rest[0])
        rest = rest[1:]
    except ValueError:
        pass  # First word is part of the message

    message = " ".join(rest)
    if not message.strip():
        raise ValueError("Reminder message cannot be empty")
    return amount, unit, message


class TelegramBot:
    """Telegram bot that delivers reminder notifications and accepts commands."""

    def __init__(
        self,
        token: str,
        default_chat_id: Optional[int] = None,
        allowed_chat_ids: Optional[list[int]] = None,
        allowed_user_ids: Optional[list[int]] = None,
    ):
        """
        Initialize the Telegram bot.

        Args:
            token: Telegram bot token from BotFather
            default_chat_id: Chat that receives reminder notifications
            allowed_chat_ids: List of chat IDs allowed to use the bot (None = allow all)
            allowed_user_ids: List of user IDs allowed to use the bot (None = allow all)
        """
        self.token = token
        self.default_chat_id = default_chat_id
        self.allowed_chat_ids = set(allowed_chat_ids) if allowed_chat_ids else None
        self.allowed_user_ids = set(allowed_user_ids) if allowed_user_ids else None
        self.application: Optional[Application] = None
        self.bot: Optional[Bot] = None

        # Callbacks into the reminder service
        self._on_create: Optional[Callable[[str, int], Awaitable[Reminder]]] = None
        self._on_partition: Optional[Callable[[], ReminderPartition]] = None
        self._on_delete: Optional[Callable[[str], bool]] = None

    def set_create_handler(self, handler: Callable[[str, int], Awaitable[Reminder]]):
        """Set handler for /remind (message, delay_ms)."""
        self._on_create = handler

    def set_partition_handler(self, handler: Callable[[], ReminderPartition]):
        """Set handler used by /list and /history."""
        self._on_partition = handler

    def set_delete_handler(self, handler: Callable[[str], bool]):
        """Set handler for /delete."""
        self._on_delete = handler

    def _is_allowed(self, chat_id: int, user_id: Optional[int] = None) -> bool:
        """Check if a chat/user is allowed to use the bot."""
        # Check user allowlist first (if configured)
        if self.allowed_user_ids is not None:
            if user_id is None or user_id not in self.allowed_user_ids:
                return False

        # Check chat allowlist (if configured)
        if self.allowed_chat_ids is not None:
            if chat_id not in self.allowed_chat_ids:
                return False

        return True

    async def _reject_if_unauthorized(self, update: Update) -> bool:
        if self._is_allowed(update.effective_chat.id, update.effective_user.id):
            return False
        logger.warning(f"Unauthorized: chat_id={update.effective_chat.id}, user_id={update.effective_user.id}")
        await update.message.reply_text("Unauthorized.")
        return True

    async def _cmd_help(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /start and /help commands."""
        if await self._reject_if_unauthorized(update):
            return

        await update.message.reply_text(
            "Reminder bot\n\n"
            "/remind <amount> [seconds|minutes|hours] <message> - set a reminder\n"
            "/list - reminders still to come\n"
            "/history - reminders whose time has passed\n"
            "/delete <id> - remove a reminder"
        )

    async def _cmd_remind(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /remind command."""
        if await self._reject_if_unauthorized(update):
            return

        if not self._on_create:
            await update.message.reply_text("Reminders not configured.")
            return

        try:
            amount, unit, message = parse_remind_args(list(context.args or []))
        except ValueError as e:
            await update.message.reply_text(str(e))
            return

        try:
            reminder = await self._on_create(message, amount * unit.value * 1000)
        except ValueError as e:
            # ValidationError is a ValueError
            await update.message.reply_text(f"Invalid reminder: {e}")
            return
        except Exception as e:
            logger.error(f"Error creating reminder: {e}")
            await update.message.reply_text(f"Error: {e}")
            return

        await update.message.reply_text(f"Reminder {reminder.id} set for {ms_to_iso(reminder.due_at)}")

    async def _cmd_list(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /list command."""
        await self._reply_with_partition(update, expired=False)

    async def _cmd_history(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /history command."""
        await self._reply_with_partition(update, expired=True)

    async def _reply_with_partition(self, update: Update, expired: bool):
        if await self._reject_if_unauthorized(update):
            return

        if not self._on_partition:
            await update.message.reply_text("Reminder listing not configured.")
            return

        label = "expired" if expired else "active"
        try:
            partition = self._on_partition()
            reminders = partition.expired if expired else partition.active

            if not reminders:
                await update.message.reply_text(f"No {label} reminders found")
                return

            lines = [f"{label.capitalize()} reminders:\n"]
            for r in reminders:
                lines.append(f"- {r.message} ({r.id}) at {ms_to_iso(r.due_at)}")

            await update.message.reply_text("\n".join(lines))

        except Exception as e:
            logger.error(f"Error listing reminders: {e}")
            await update.message.reply_text(f"Error: {e}")

    async def _cmd_delete(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /delete command."""
        if await self._reject_if_unauthorized(update):
            return

        if not self._on_delete:
            await update.message.reply_text("Reminder deletion not configured.")
            return

        if not context.args:
            await update.message.reply_text("Usage: /delete <id>")
            return

        reminder_id = context.args[0]
        if self._on_delete(reminder_id):
            await update.message.reply_text(f"Deleted reminder {reminder_id}")
        else:
            await update.message.reply_text(f"No reminder {reminder_id}")

    async def send_notification(
        self,
        message: str,
        chat_id: Optional[int] = None,
    ) -> Optional[int]:
        """
        Send a notification message.

        Args:
            message: Message text
            chat_id: Chat to send to (default: configured chat)

        Returns:
            Message ID of sent message, or None on failure
        """
        if not self.bot:
            logger.error("Bot not initialized")
            return None

        target = chat_id or self.default_chat_id
        if not target:
            logger.warning("No Telegram chat ID configured for notifications")
            return None

        try:
            msg = await self.bot.send_message(chat_id=target, text=message)
            return msg.message_id
        except Exception as e:
            logger.error(f"Failed to send Telegram message: {e}")
            return None

    async def start(self):
        """Start the bot."""
        self.application = (
            Application.builder()
            .token(self.token)
            .build()
        )

        self.bot = self.application.bot

        # Register handlers
        self.application.add_handler(CommandHandler("start", self._cmd_help))
        self.application.add_handler(CommandHandler("help", self._cmd_help))
        self.application.add_handler(CommandHandler("remind", self._cmd_remind))
        self.application.add_handler(CommandHandler("list", self._cmd_list))
        self.application.add_handler(CommandHandler("history", self._cmd_history))
        self.application.add_handler(CommandHandler("delete", self._cmd_delete))

        # Start polling
        await self.application.initialize()
        await self.application.start()
        await self.application.updater.start_polling()

        logger.info("Telegram bot started")

    async def stop(self):
        """Stop the bot."""
        if self.application:
            await self.application.updater.stop()
            await self.application.stop()
            await self.application.shutdown()
            self.application = None
            self.bot = None
            logger.info("Telegram bot stopped")
