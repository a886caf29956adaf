"""Auto-incrementing counters for numeric identifiers."""

from enum import StrEnum


class CounterType(StrEnum):
    """Collections whose documents get sequential integer ids."""

    USER = "user"
    DOCUMENT_HISTORY = "document_history"
