"""Exceptions raised by repositories and handlers.

Messages of ``BotError`` subclasses are written for end users and are safe
to reply with; anything else reaching the error router is reported
generically.
"""

from __future__ import annotations


class BotError(Exception):
    """Base class for errors whose message can be shown to the invoker."""


class ContextError(BotError):
    """The command needs a group chat and was used somewhere else."""

    def __init__(self, message: str = "This command must be used in a group") -> None:
        super().__init__(message)


class PersistenceError(BotError):
    """The database rejected or failed an operation."""


class DuplicateAliasError(PersistenceError):
    def __init__(self, command_name: str) -> None:
        super().__init__("An alias with that name already exists here")
        self.command_name = command_name


class AliasNotFoundError(BotError):
    def __init__(self) -> None:
        super().__init__("Could not find alias")


class InvalidStateError(BotError):
    """An operation needed a persisted row and got an unsaved object."""


class ReminderDeliveryError(Exception):
    """A due reminder could not be posted."""
