"""IM Gateway - Provider payload formatting for chat-bot webhooks."""

__version__ = "0.1.0"
