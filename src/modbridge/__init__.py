"""modbridge - Import and sync coordinator for modding a game over ADB."""

__version__ = "0.1.0"
