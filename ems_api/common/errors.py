# ems_api/common/errors.py
from flask import Blueprint, current_app
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import IntegrityError
from ems_api.common.http import fail

bp_errors = Blueprint("errors", __name__)


class APIError(Exception):
    """Error raised from views/services and rendered as a failure envelope."""
    def __init__(self, code, message, status_code=400, payload=None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.payload = payload


@bp_errors.app_errorhandler(APIError)
def _api_error(e: APIError):
    return fail(message=e.message, status=e.status_code, code=e.code, detail=e.payload)

@bp_errors.app_errorhandler(HTTPException)
def _http(e: HTTPException):
    return fail(message=e.description or e.name, status=e.code or 400)

@bp_errors.app_errorhandler(IntegrityError)
def _integrity(e: IntegrityError):
    # 409 for unique/FK violations
    return fail(message="Conflict / integrity error", status=409, code="CONSTRAINT_ERROR",
                detail=str(e.orig) if getattr(e, "orig", None) else str(e))

@bp_errors.app_errorhandler(Exception)
def _unhandled(e: Exception):
    current_app.logger.exception(e)
    return fail(message="Internal Server Error", status=500)


_BACKEND_STATUS = {
    "23505": 409,
    "23503": 409,
    "23502": 422,
    "23514": 422,
    "22P02": 422,
    "PGRST116": 404,
    "PGRST204": 400,
    "PGRST200": 400,
    "PGRST100": 400,
    "42703": 400,
    "42P01": 404,
}

def backend_failure(message, error):
    """Log a data-service error and turn it into a failure envelope."""
    current_app.logger.error("%s: [%s] %s", message, error.code, error.message)
    return fail(message=message, status=_BACKEND_STATUS.get(error.code, 502),
                code=error.code or "BACKEND_ERROR", detail=error.to_dict())
