"""Custom error classes."""
from typing import Optional


class TokenTaxError(Exception):
    """Base exception for token tax record handling."""
    pass


class CsvFormatError(TokenTaxError):
    """The CSV document itself is malformed (missing or unexpected header)."""
    pass


class RowLimitError(TokenTaxError):
    """A CSV document holds more data rows than allowed."""
    pass


class DecodeError(TokenTaxError):
    """A cell could not be decoded into a record field."""

    def __init__(
        self,
        field: Optional[str],
        value: Optional[str],
        reason: str,
        line: Optional[int] = None
    ):
        self.field = field
        self.value = value
        self.reason = reason
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        location = f"line {self.line}: " if self.line is not None else ""
        if self.field is None:
            return f"{location}{self.reason}"
        return f"{location}invalid {self.field} value {self.value!r}: {self.reason}"

    def at_line(self, line: int) -> "DecodeError":
        """Return a copy of this error pinned to a CSV line number."""
        return DecodeError(self.field, self.value, self.reason, line=line)


class RecordInvariantError(AssertionError):
    """
    A record was interpreted in a state it can never legitimately reach.

    Raised by the dispatch accessors for records of kind ``Unknown`` or
    missing their authoritative amount. Deliberately outside the
    ``TokenTaxError`` hierarchy.
    """
    pass
