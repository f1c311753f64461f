"""Error kinds raised by the rating service.

Each kind carries the status string used on the callable wire format and
the HTTP status it maps to.
"""


class ReviewServiceError(Exception):
    status = "INTERNAL"
    http_status = 500

    def __init__(self, message: str = "Internal error"):
        super().__init__(message)
        self.message = message

    @property
    def public_message(self) -> str:
        return self.message


class Unauthenticated(ReviewServiceError):
    status = "UNAUTHENTICATED"
    http_status = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class InvalidArgument(ReviewServiceError):
    status = "INVALID_ARGUMENT"
    http_status = 400


class StorageFailure(ReviewServiceError):
    status = "INTERNAL"
    http_status = 500

    @property
    def public_message(self) -> str:
        # driver messages can contain hosts and credentials
        return "Internal error"
