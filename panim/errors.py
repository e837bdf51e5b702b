from __future__ import annotations


class PanimError(Exception):
    """Base class for workbench errors."""


class InvalidScheme(PanimError, ValueError):
    def __init__(self, name: str):
        super().__init__(f"unknown cipher scheme: {name!r}")
        self.name = name


class SchemeValidationError(PanimError, ValueError):
    """A cipher table that is not its own inverse."""


class EmptyInputError(PanimError, ValueError):
    pass


class CollaboratorError(PanimError):
    """Network, timeout or service failure talking to the analysis service."""


class ImportFormatError(PanimError, ValueError):
    pass


class NotFound(PanimError, LookupError):
    def __init__(self, item_id: str):
        super().__init__(f"history item not found: {item_id}")
        self.item_id = item_id
