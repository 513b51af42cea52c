"""Domain enumerations shared by fields, search and the codec."""

from enum import Enum


class InputSource(str, Enum):
    """Where a raw appointment string came from.

    The origin selects which appointment grammar applies when parsing.
    """
    USER_INPUT = "user_input"
    STORAGE = "storage"


class SearchMode(str, Enum):
    """Which record attribute a keyword search matches against."""
    BY_NAME = "by_name"
    BY_ID = "by_id"
