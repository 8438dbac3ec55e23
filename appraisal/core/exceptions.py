# appraisal/core/exceptions.py
from fastapi import status


class AppraisalError(Exception):
    """Base class for errors raised by the appraisal services."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(AppraisalError):
    status_code = status.HTTP_404_NOT_FOUND


class PermissionDeniedError(AppraisalError):
    status_code = status.HTTP_403_FORBIDDEN


class InvalidTransitionError(AppraisalError):
    status_code = status.HTTP_409_CONFLICT


class ValidationError(AppraisalError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
