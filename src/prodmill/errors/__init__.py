"""Error translation for user-friendly CLI messages."""

from .translator import ErrorTranslator, UserFriendlyError

__all__ = ["ErrorTranslator", "UserFriendlyError"]
