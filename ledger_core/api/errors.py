"""Translate ledger errors into HTTP responses."""

from fastapi import HTTPException, status

from ledger_core.domain.ledger.exceptions import (
    InvalidStateError,
    LedgerError,
    NotFoundError,
    ValidationError,
)

_STATUS_BY_ERROR = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStateError: status.HTTP_409_CONFLICT,
}


def to_http_exception(error: LedgerError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.to_dict())
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=error.to_dict(),
    )
