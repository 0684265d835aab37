"""Exception types raised by the ingest pipeline.

A skipped row is not an error: parsers return ``None`` for rows a business
rule excludes. Everything here is a real failure.
"""

from __future__ import annotations

from pathlib import Path


class BudgetError(Exception):
    """Base class for all budget-ingest failures."""


class ParseError(BudgetError):
    """A row field could not be parsed (missing field, bad amount or date)."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: str | None = None,
        path: Path | None = None,
        line: int | None = None,
    ) -> None:
        self.message = message
        self.field = field
        self.value = value
        self.path = path
        self.line = line
        super().__init__(str(self))

    def at(self, path: Path, line: int) -> "ParseError":
        """Return a copy of this error tagged with its file location."""
        return ParseError(self.message, field=self.field, value=self.value, path=path, line=line)

    def __str__(self) -> str:
        where = ""
        if self.path is not None:
            where = f"{self.path}"
            if self.line is not None:
                where += f":{self.line}"
            where += ": "
        detail = ""
        if self.field is not None:
            detail = f" (field {self.field!r}, value {self.value!r})"
        return f"{where}{self.message}{detail}"


class UnrecognizedOriginError(BudgetError):
    """The header row does not belong to any supported institution."""

    def __init__(self, path: Path, first_header: str | None) -> None:
        self.path = path
        self.first_header = first_header
        super().__init__(f"{path}: unknown header type, first header: {first_header!r}")


class ConfigurationError(BudgetError):
    """The pipeline was asked to parse an origin it has no parser for."""


class ConfigError(BudgetError):
    """The settings file is malformed."""


class StorageError(BudgetError):
    """The database rejected a read or write."""
