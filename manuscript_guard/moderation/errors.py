from __future__ import annotations


class ModerationError(Exception):
    """Base class for errors raised by the moderation engine."""


class InvalidInputError(ModerationError, ValueError):
    """Input rejected before any analysis work starts (missing file, blank text)."""
