"""Telegram bot that collects media files and sends them back in order."""

__version__ = "0.1.0"
