"""Notification channel adapters."""

from .base import EventHandler, NotificationChannel

__all__ = ["EventHandler", "NotificationChannel", "create_channel"]


def create_channel(settings) -> NotificationChannel:
    """Build the channel adapter described by *settings*."""
    from .telegram import TelegramChannel

    return TelegramChannel(settings.bot_token, mode=settings.approval_mode)
