"""
Telegram Notification Channel
=============================

Posts approval requests to a Telegram chat and turns approver interactions
into ApprovalEvents. Two interchangeable approval UX modes:

    buttons    inline keyboard with Approve / Deny (callback queries)
    reactions  approvers react to the request with an emoji; the bot must be
               an administrator of the chat to receive reaction updates

Updates are received by long polling on the same event loop that awaits the
decision, so events arrive while the arbiter waits.
"""

import logging

from telegram import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    ReplyParameters,
    Update,
    User,
)
from telegram.constants import ParseMode
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    ContextTypes,
    MessageReactionHandler,
)

from prompt_sudo.approval.access_filter import (
    BUTTON_APPROVE_ID,
    BUTTON_DENY_ID,
    Rejection,
)
from prompt_sudo.core.exceptions import ConnectivityError, ErrorCode, UsageError
from prompt_sudo.core.types import ApprovalEvent
from prompt_sudo.interfaces.base import NotificationChannel

logger = logging.getLogger(__name__)

TELEGRAM_MESSAGE_LIMIT = 4096

UNAUTHORIZED_NOTICE = "⚠️ You are not an authorized approver."


def make_request_id(chat_id: int | str, message_id: int) -> str:
    """Telegram message ids are per chat, so the request id carries both."""
    return f"{chat_id}:{message_id}"


def split_request_id(request_id: str) -> tuple[str, int]:
    chat_id, _, message_id = request_id.rpartition(":")
    return chat_id, int(message_id)


def _display_name(user: User | None) -> str | None:
    if user is None:
        return None
    if user.username:
        return f"@{user.username}"
    return user.full_name or str(user.id)


class TelegramChannel(NotificationChannel):
    """
    NotificationChannel backed by python-telegram-bot.

    Args:
        bot_token: Bot token from BotFather
        mode: "buttons" or "reactions"
        application: Pre-built Application (tests inject a mock)
    """

    message_limit = TELEGRAM_MESSAGE_LIMIT

    def __init__(
        self,
        bot_token: str,
        mode: str = "buttons",
        application: Application | None = None,
    ) -> None:
        super().__init__()
        if mode not in ("buttons", "reactions"):
            raise ValueError(f"Unknown approval mode: {mode}")
        self.mode = mode
        self.application = application or Application.builder().token(bot_token).build()
        self._opened = False

        if mode == "buttons":
            self.application.add_handler(CallbackQueryHandler(self._handle_callback_query))
            self._allowed_updates = [Update.CALLBACK_QUERY]
        else:
            self.application.add_handler(MessageReactionHandler(self._handle_reaction))
            self._allowed_updates = [Update.MESSAGE_REACTION]
            self.approval_hint = "React with 👍 to approve or 👎 to deny."

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    async def open(self) -> None:
        try:
            await self.application.initialize()
            self._opened = True
            await self.application.start()
            await self.application.updater.start_polling(
                allowed_updates=self._allowed_updates,
                drop_pending_updates=True,
            )
        except TelegramError as e:
            await self.close()
            raise ConnectivityError(f"failed to connect to Telegram: {e}") from e
        logger.info("Telegram channel open (mode: %s)", self.mode)

    async def close(self) -> None:
        app = self.application
        try:
            if app.updater and app.updater.running:
                await app.updater.stop()
            if app.running:
                await app.stop()
            if self._opened:
                await app.shutdown()
        except TelegramError as e:
            logger.warning("Error closing Telegram channel: %s", e)
        finally:
            self._opened = False

    # ========================================================================
    # MESSAGES
    # ========================================================================

    async def post_request(self, channel_id: str, text: str, reply_to: str | None = None) -> str:
        kwargs = {}
        if self.mode == "buttons":
            kwargs["reply_markup"] = InlineKeyboardMarkup([[
                InlineKeyboardButton("✅ Approve", callback_data=BUTTON_APPROVE_ID),
                InlineKeyboardButton("❌ Deny", callback_data=BUTTON_DENY_ID),
            ]])
        if reply_to:
            try:
                reply_message_id = int(reply_to)
            except ValueError:
                raise UsageError(
                    f"--reply-to must be a numeric message ID, got {reply_to!r}"
                ) from None
            kwargs["reply_parameters"] = ReplyParameters(
                message_id=reply_message_id, allow_sending_without_reply=True
            )

        try:
            message = await self.application.bot.send_message(
                chat_id=channel_id,
                text=text,
                parse_mode=ParseMode.HTML,
                **kwargs,
            )
        except TelegramError as e:
            raise ConnectivityError(
                f"failed to send Telegram message: {e}",
                details={"channel": channel_id},
                error_code=ErrorCode.REQUEST_NOT_SENT,
            ) from e
        return make_request_id(message.chat_id, message.message_id)

    async def edit_request(self, request_id: str, text: str) -> None:
        chat_id, message_id = split_request_id(request_id)
        # Omitting reply_markup drops the inline keyboard.
        await self.application.bot.edit_message_text(
            text=text,
            chat_id=chat_id,
            message_id=message_id,
            parse_mode=ParseMode.HTML,
        )

    # ========================================================================
    # INBOUND EVENTS
    # ========================================================================

    async def _handle_callback_query(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Approve/Deny button clicks."""
        query = update.callback_query
        if query is None or query.message is None:
            return

        event = ApprovalEvent(
            event_id=str(query.id),
            actor_id=str(query.from_user.id),
            target_id=make_request_id(query.message.chat.id, query.message.message_id),
            action=query.data or "",
            actor_name=_display_name(query.from_user),
        )
        verdict = self.dispatch(event)

        try:
            if isinstance(verdict, Rejection) and verdict.notify_actor:
                await query.answer(UNAUTHORIZED_NOTICE, show_alert=True)
            else:
                await query.answer()
        except TelegramError as e:
            logger.warning("Failed to answer callback query: %s", e)

    async def _handle_reaction(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Emoji reactions added to a message. Anonymous reactions are ignored."""
        reaction = update.message_reaction
        if reaction is None or reaction.user is None:
            return

        before = {getattr(r, "emoji", None) for r in reaction.old_reaction}
        added = [
            r.emoji for r in reaction.new_reaction
            if getattr(r, "emoji", None) and r.emoji not in before
        ]
        target_id = make_request_id(reaction.chat.id, reaction.message_id)
        for emoji in added:
            self.dispatch(ApprovalEvent(
                event_id=f"{update.update_id}:{emoji}",
                actor_id=str(reaction.user.id),
                target_id=target_id,
                action=emoji,
                actor_name=_display_name(reaction.user),
            ))
