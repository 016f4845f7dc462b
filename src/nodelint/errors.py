"""Exceptions raised by nodelint.

Rule violations never raise; they become diagnostics. Exceptions are
reserved for conditions that stop processing of a whole package root.
"""


class NodelintError(Exception):
    """Base class for nodelint errors."""


class InvocationError(NodelintError):
    """A package root cannot be processed (missing, not a directory, unreadable)."""

    def __init__(self, root: str, reason: str):
        super().__init__(f"{root}: {reason}")
        self.root = root
        self.reason = reason
