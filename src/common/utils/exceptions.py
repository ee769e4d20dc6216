# src/common/utils/exceptions.py
"""Domain errors raised by the ledger services and their HTTP mapping."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class ClinicError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ClinicError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidArgumentError(ClinicError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidStateError(ClinicError):
    status_code = status.HTTP_409_CONFLICT


class InternalError(ClinicError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def clinic_error_handler(request: Request, exc: ClinicError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the domain error handler to the application."""
    app.add_exception_handler(ClinicError, clinic_error_handler)
