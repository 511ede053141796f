"""
This module defines custom exceptions for the state_check application.

Differences between states are results, not errors; the exceptions below are
reserved for inputs the checker cannot work with at all.
"""

class StateCheckError(Exception):
    """Base class for all custom exceptions in the state checker."""
    pass

class StateFileError(StateCheckError):
    """Raised when a state file cannot be read.

    This covers missing files, unreadable archives and archives that do not
    contain exactly one plist.

    Attributes:
        path (str): The path of the offending file.
    """
    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot read state file '{path}': {reason}")
        self.path = path
        self.reason = reason
