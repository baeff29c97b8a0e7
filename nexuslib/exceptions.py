"""
Nexus Library - Exceptions and their HTTP mapping
"""
import structlog
from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = structlog.get_logger('exceptions')


class NexusException(Exception):
    """Base exception for Nexus Library"""

    code = "NEXUS_ERROR"
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self):
        return {'code': self.code, 'success': False, 'message': self.message}


class AdapterException(NexusException):
    """A source adapter could not read its installation records"""

    code = "ADAPTER_ERROR"
    status_code = 500

    def __init__(self, message: str, mechanism: str = None):
        super().__init__(message)
        self.mechanism = mechanism


class MetadataServiceException(NexusException):
    """External metadata service failure (network, auth or bad payload)"""

    code = "METADATA_SERVICE_ERROR"
    status_code = 502

    def __init__(self, message: str, service: str = None):
        super().__init__(message)
        self.service = service


class PersistenceException(NexusException):
    code = "PERSISTENCE_ERROR"
    status_code = 500


class ValidationException(NexusException):
    code = "VALIDATION_ERROR"


class NotFoundException(NexusException):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


def register_exception_handlers(app):
    """JSON bodies for domain errors, HTTP errors and anything unhandled"""

    @app.errorhandler(NexusException)
    def handle_nexus_exception(e):
        if e.status_code >= 500:
            logger.error(f"{e.code}: {e.message}")
        else:
            logger.warning(f"{e.code}: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        code = e.name.upper().replace(' ', '_')
        return jsonify({'code': code, 'success': False, 'message': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({'code': 'INTERNAL_ERROR', 'success': False, 'message': 'An unexpected error occurred'}), 500
