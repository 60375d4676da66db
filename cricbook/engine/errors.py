"""
Domain errors raised by the engines and translated to HTTP errors by the API
"""


class CricbookError(Exception):
    """Base class for domain errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(CricbookError):
    pass


class PermissionDenied(CricbookError):
    pass


class ConflictError(CricbookError):
    """Operation clashes with existing state (duplicate vote, taken username)"""
    pass


class DomainValidationError(CricbookError):
    pass


class PersistenceError(CricbookError):
    """A write failed and was rolled back"""
    pass
