"""Domain errors raised by the service layer.

Routers translate these into HTTP responses; the status code travels with the
exception so every router maps them the same way.
"""

from fastapi import status


class AuraTrackerError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AuraTrackerError):
    status_code = status.HTTP_400_BAD_REQUEST


class ProposalExpiredError(AuraTrackerError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AuraTrackerError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AuraTrackerError):
    status_code = status.HTTP_409_CONFLICT
