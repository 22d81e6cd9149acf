"""Building blocks for chat-bot plugins: reminders, MIDI note games, picture stores and web helpers."""

__version__ = "0.1.0"