"""
DomainError - Common base for every error the chat service reports to clients.
"""


class DomainError(Exception):
    """Base class for expected, client-reportable failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
