"""
API response envelope shared by every blueprint
"""

from functools import wraps

import structlog
from flask import jsonify

from nexuslib.exceptions import NexusException

logger = structlog.get_logger('api')


class ErrorCode:
    SUCCESS = "SUCCESS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


DEFAULT_MESSAGES = {
    ErrorCode.VALIDATION_ERROR: "Invalid request parameters",
    ErrorCode.NOT_FOUND: "Resource not found",
    ErrorCode.CONFLICT: "Resource conflict",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred",
}


def success_response(data=None, message=None, status_code=200):
    body = {"code": ErrorCode.SUCCESS, "success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return jsonify(body), status_code


def error_response(error_code=ErrorCode.INTERNAL_ERROR, message=None, details=None, status_code=400, log_error=True):
    body = {
        "code": error_code,
        "success": False,
        "message": message or DEFAULT_MESSAGES.get(error_code, "Request failed"),
    }
    if details:
        body["details"] = details
    if log_error:
        logger.warning(f"{error_code}: {body['message']}", details=details)
    return jsonify(body), status_code


def handle_api_errors(f):
    """
    Turn stray ValueError/KeyError into 400s and anything else into a 500.
    NexusException subclasses propagate to the app-level handlers.
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except NexusException:
            raise
        except (ValueError, TypeError) as e:
            return error_response(ErrorCode.VALIDATION_ERROR, message=str(e))
        except KeyError as e:
            return error_response(ErrorCode.VALIDATION_ERROR, message=f"Missing required parameter: {e}")
        except Exception as e:
            logger.error(f"Unhandled exception in {f.__name__}: {e}", exc_info=True)
            return error_response(ErrorCode.INTERNAL_ERROR, status_code=500, log_error=False)

    return wrapper
