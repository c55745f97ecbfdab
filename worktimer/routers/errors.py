"""Translation of service errors into HTTP errors."""
from fastapi import HTTPException, status

from worktimer.exceptions import (
    AuthenticationError,
    CsvImportError,
    NotFoundError,
    SignupDisabledError,
    TimeTrackingError,
    ValidationError,
)

STATUS_BY_ERROR = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    CsvImportError: status.HTTP_400_BAD_REQUEST,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    SignupDisabledError: status.HTTP_403_FORBIDDEN,
}


def http_error(error: TimeTrackingError) -> HTTPException:
    """
    Build the HTTPException for a service error.

    Validation errors name the offending field in an X-Error-Field header.
    """
    status_code = STATUS_BY_ERROR.get(type(error), status.HTTP_400_BAD_REQUEST)
    headers = None
    if isinstance(error, ValidationError) and error.field:
        headers = {"X-Error-Field": error.field}
    return HTTPException(status_code=status_code, detail=error.message, headers=headers)
