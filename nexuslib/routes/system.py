"""
System Routes - settings and Prometheus metrics
"""

from flask import Blueprint, current_app, request

from nexuslib.api_responses import ErrorCode, error_response, handle_api_errors, success_response
from nexuslib.jobs import get_scanner
from nexuslib.metrics import metrics_response
from nexuslib.settings import load_settings, set_source_priority
from nexuslib.utils import sanitize_sensitive_data

system_bp = Blueprint("system", __name__, url_prefix="/api")


@system_bp.route("/metrics")
def metrics():
    return metrics_response()


@system_bp.route("/settings")
@handle_api_errors
def get_settings():
    """Current settings with credentials masked"""
    return success_response(sanitize_sensitive_data(load_settings()))


@system_bp.route("/settings/priority", methods=["POST"])
@handle_api_errors
def update_priority():
    data = request.get_json(silent=True) or {}
    priority = data.get("priority")
    if not isinstance(priority, list):
        return error_response(ErrorCode.VALIDATION_ERROR, message="priority must be a list", status_code=400)

    success, errors = set_source_priority(priority)
    if not success:
        return error_response(ErrorCode.VALIDATION_ERROR, message="Invalid priority", details=errors, status_code=400)
    saved = load_settings()["scan"]["priority"]
    # Applies to the next scan without a restart
    get_scanner(current_app._get_current_object()).settings.setdefault("scan", {})["priority"] = list(saved)
    return success_response({"priority": saved})
