from .session import UiSession, first_match

__all__ = ["UiSession", "first_match"]
