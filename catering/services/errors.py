"""Domain errors raised by services and translated to HTTP status codes by routes."""
from fastapi import HTTPException


class ValidationError(ValueError):
    status_code = 400


class NotFoundError(ValueError):
    status_code = 404


class InvalidTransitionError(ValueError):
    status_code = 409


class ConflictError(ValueError):
    status_code = 409


def http_error(e: ValueError) -> HTTPException:
    return HTTPException(status_code=getattr(e, "status_code", 400), detail=str(e))
