"""
Chat transport - Telegram Bot API client.
"""

from .telegram import TelegramTransport, split_message

__all__ = ["TelegramTransport", "split_message"]
