"""Project-wide exception types."""

from __future__ import annotations

from pathlib import Path


class DealarrError(Exception):
    """Base exception for all Dealarr errors."""


class ConfigError(DealarrError):
    """Raised when settings or matching overrides are malformed."""


class InputError(DealarrError):
    """Raised when the title list cannot be used as given.

    These errors are fatal for the input they describe; the CLI reports them
    instead of searching.
    """

    def __init__(self, message: str, path: Path | str | None = None, line: int | None = None):
        self.path = str(path) if path is not None else None
        self.line = line
        location = ""
        if self.path and line is not None:
            location = f"{self.path}:{line}: "
        elif self.path:
            location = f"{self.path}: "
        super().__init__(f"{location}{message}")


class UnknownTitleError(InputError):
    """Raised when the primary catalog has no priced listing at all for a title."""

    def __init__(self, title: str):
        self.title = title
        super().__init__(
            f"Couldn't find a priced game for '{title}' (did you mistype the name, or is it out yet?)"
        )


class StoreError(DealarrError):
    """Base exception for storefront adapter failures."""

    def __init__(self, store_id: str, message: str):
        self.store_id = store_id
        super().__init__(f"[{store_id}] {message}")


class StoreKeyError(StoreError):
    """Raised when a storefront search key cannot be bootstrapped."""


class StoreResponseError(StoreError):
    """Raised when a storefront response does not have the expected shape."""


class ReportError(DealarrError):
    """Raised when results cannot be classified into a report."""
