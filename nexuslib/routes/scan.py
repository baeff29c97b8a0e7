"""
Scan Routes - start, inspect and cancel catalog scans
"""

from flask import Blueprint, current_app

from nexuslib.api_responses import ErrorCode, error_response, handle_api_errors, success_response
from nexuslib.job_tracker import JobType
from nexuslib.jobs import cancel_scan_job, current_scan_job, get_scanner, get_tracker, start_scan_job

scan_bp = Blueprint("scan", __name__, url_prefix="/api")


@scan_bp.route("/scan", methods=["POST"])
@handle_api_errors
def start_scan():
    """Start a full background scan"""
    started, job_id = start_scan_job(current_app._get_current_object())
    if not started:
        return error_response(
            ErrorCode.CONFLICT,
            message="Scan already in progress",
            details={"job_id": job_id},
            status_code=409,
        )
    return success_response({"job_id": job_id}, message="Scan started", status_code=202)


@scan_bp.route("/scan/status")
@handle_api_errors
def scan_status():
    app = current_app._get_current_object()
    running_job = current_scan_job(app)
    job = get_tracker(app).get_job(running_job) if running_job else get_tracker(app).get_latest_job(JobType.LIBRARY_SCAN)
    return success_response({"running": running_job is not None, "job": job})


@scan_bp.route("/scan/cancel", methods=["POST"])
@handle_api_errors
def cancel_scan():
    job_id = cancel_scan_job(current_app._get_current_object())
    if not job_id:
        return error_response(ErrorCode.NOT_FOUND, message="No scan in progress", status_code=404, log_error=False)
    return success_response({"job_id": job_id}, message="Cancellation requested")


@scan_bp.route("/scan/<mechanism>", methods=["POST"])
@handle_api_errors
def scan_single_source(mechanism):
    """Scan one source synchronously; nothing is persisted"""
    candidates = get_scanner(current_app._get_current_object()).scan_source(mechanism)
    return success_response({"mechanism": mechanism, "games": [c.to_dict() for c in candidates]})
