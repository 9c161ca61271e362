"""
Command handling errors.

Raised for presentation-layer messages that cannot be routed or whose
payload is unusable.
"""

from typing import Optional


class CommandError(Exception):
    """A command from the presentation layer could not be handled."""

    def __init__(self, message: str, command_type: Optional[str] = None):
        super().__init__(message)
        self.command_type = command_type
