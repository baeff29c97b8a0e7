"""
Nexus Library - Background Jobs Module
Runs catalog scans on a daemon thread inside an application context
"""
import logging
import threading

from nexuslib.db import db
from nexuslib.job_tracker import JobStatus, JobTracker, JobType

logger = logging.getLogger('jobs')

EXTENSION_KEY = "nexus"


def init_jobs(app, scanner, tracker=None):
    """Attach the scanner service and job tracker to the app"""
    app.extensions[EXTENSION_KEY] = {
        "scanner": scanner,
        "tracker": tracker or JobTracker(),
        "scan_lock": threading.Lock(),
        "current_job": None,
    }
    return app.extensions[EXTENSION_KEY]


def _state(app):
    return app.extensions[EXTENSION_KEY]


def get_scanner(app):
    return _state(app)["scanner"]


def get_tracker(app):
    return _state(app)["tracker"]


def current_scan_job(app):
    """Job id of the scan still running, if any"""
    state = _state(app)
    job_id = state["current_job"]
    if not job_id:
        return None
    job = state["tracker"].get_job(job_id)
    if job and job["status"] in (JobStatus.SCHEDULED, JobStatus.RUNNING):
        return job_id
    return None


def run_scan_job(app, job_id, mechanism=None):
    """Scan body executed on the worker thread

    Args:
        app: Flask app instance for app context
        job_id: tracker id registered by start_scan_job
        mechanism: limit to one source (no persistence) when given
    """
    tracker = get_tracker(app)
    scanner = get_scanner(app)

    with app.app_context():
        tracker.start_job(job_id, "Starting scan")
        try:
            if mechanism:
                candidates = scanner.scan_source(mechanism)
                tracker.complete_job(job_id, {"mechanism": mechanism, "games": [c.to_dict() for c in candidates]})
                return

            result = scanner.scan_all(
                progress=lambda percent, message: tracker.update_progress(job_id, percent, message),
                cancel_event=tracker.cancel_event(job_id),
            )
            if result.status == "cancelled":
                tracker.mark_cancelled(job_id, result.to_dict())
            elif result.status == "already_running":
                tracker.fail_job(job_id, "Scan already in progress")
            else:
                tracker.complete_job(job_id, result.to_dict())
        except Exception as e:
            logger.error(f"Error during scan job {job_id}: {e}", exc_info=True)
            tracker.fail_job(job_id, str(e))
        finally:
            db.session.remove()


def start_scan_job(app, mechanism=None):
    """Start a scan on a daemon thread

    Returns:
        (started, job_id): started is False when a scan is already running,
        in which case job_id is the running job's id.
    """
    state = _state(app)
    tracker = state["tracker"]

    with state["scan_lock"]:
        running = current_scan_job(app)
        if running or state["scanner"].is_running:
            logger.info('Skipping library scan: scan already in progress.')
            return False, running

        job_type = JobType.SOURCE_SCAN if mechanism else JobType.LIBRARY_SCAN
        job_id = tracker.register_job(job_type, metadata={"mechanism": mechanism} if mechanism else None)
        state["current_job"] = job_id

    thread = threading.Thread(target=run_scan_job, args=(app, job_id, mechanism), name=f"scan-{job_id}", daemon=True)
    thread.start()
    return True, job_id


def cancel_scan_job(app):
    """Request cancellation of the running scan; returns its job id or None"""
    job_id = current_scan_job(app)
    if job_id and get_tracker(app).cancel_job(job_id):
        return job_id
    return None
