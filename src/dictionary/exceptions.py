# Custom exceptions

"""
Custom exceptions for diamscope dictionary handling.
"""


class DiamscopeError(Exception):
    """Base exception for all diamscope errors."""
    pass


class DictionaryError(DiamscopeError):
    """Base exception for dictionary problems."""
    pass


class DictionaryNotFoundError(DictionaryError):
    """Raised when a dictionary resource cannot be located."""
    pass


class DictionaryFormatError(DictionaryError):
    """Raised when a dictionary document does not have the expected shape."""
    pass


class DictionaryEntryError(DictionaryError):
    """Raised for one malformed dictionary entry; the loader skips it."""

    def __init__(self, entry_kind: str, name, message: str):
        self.entry_kind = entry_kind
        self.name = name
        super().__init__(f"Diameter Dictionary: {message}")
