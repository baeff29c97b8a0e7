from __future__ import annotations
from dataclasses import dataclass, field
import datetime
import threading
import time
import uuid
from typing import Optional, Dict, Any, List
import logging
from nexuslib.utils import format_datetime, now_utc

logger = logging.getLogger(__name__)


class JobType:
    LIBRARY_SCAN = "library_scan"
    SOURCE_SCAN = "source_scan"


class JobStatus:
    SCHEDULED = "scheduled"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


ACTIVE_STATUSES = (JobStatus.SCHEDULED, JobStatus.RUNNING)


@dataclass
class JobState:
    """Internal state of a job"""

    job_id: str
    job_type: str
    status: str
    started_at: Optional[datetime.datetime] = None
    completed_at: Optional[datetime.datetime] = None
    progress: Dict[str, Any] = field(default_factory=lambda: {"percent": 0, "message": ""})
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.job_id,
            "type": self.job_type,
            "status": self.status,
            "started_at": format_datetime(self.started_at),
            "completed_at": format_datetime(self.completed_at),
            "progress": dict(self.progress),
            "result": self.result,
            "error": self.error,
            "metadata": dict(self.metadata),
        }


class JobTracker:
    """Tracks background jobs in memory; one instance per application"""

    def __init__(self, max_history: int = 50):
        self.emitter = None
        self.max_history = max_history
        self._jobs: Dict[str, JobState] = {}
        self._lock = threading.RLock()
        self._last_update_time = {}  # job_id -> timestamp
        self._last_progress = {}  # job_id -> last_percent

    def set_emitter(self, emitter):
        """Callable receiving ("job_update", job dict) on every change"""
        self.emitter = emitter
        logger.debug("JobTracker emitter set")

    def _emit_update(self, job: JobState):
        if not self.emitter:
            return
        try:
            self.emitter("job_update", job.to_dict())
        except Exception as e:
            logger.warning(f"Job update emitter failed: {e}")

    def _trim_history(self):
        finished = [j for j in self._jobs.values() if j.status not in ACTIVE_STATUSES]
        excess = len(finished) - self.max_history
        if excess <= 0:
            return
        finished.sort(key=lambda j: j.completed_at or j.started_at or now_utc())
        for job in finished[:excess]:
            self._jobs.pop(job.job_id, None)
            self._last_update_time.pop(job.job_id, None)
            self._last_progress.pop(job.job_id, None)

    def register_job(self, job_type: str, metadata: Dict[str, Any] = None) -> str:
        """Register a new job and return the job_id"""
        job_id = f"{job_type}_{uuid.uuid4().hex[:8]}"
        job = JobState(job_id=job_id, job_type=job_type, status=JobStatus.SCHEDULED, metadata=metadata or {})
        with self._lock:
            self._jobs[job_id] = job
            self._trim_history()
        logger.info(f"Registered job: {job_id} ({job_type})")
        self._emit_update(job)
        return job_id

    def start_job(self, job_id: str, message: str = ""):
        with self._lock:
            job = self._jobs.get(job_id)
            if not job:
                return
            job.status = JobStatus.RUNNING
            job.started_at = now_utc()
            job.progress = {"percent": 0, "message": message}
        logger.info(f"Started job: {job_id}")
        self._emit_update(job)

    def cancel_job(self, job_id: str) -> bool:
        """Request cancellation; the job stops at its next checkpoint"""
        with self._lock:
            job = self._jobs.get(job_id)
            if not job or job.status not in ACTIVE_STATUSES:
                return False
            job.cancel_event.set()
        logger.info(f"Cancellation requested for job: {job_id}")
        return True

    def is_cancelled(self, job_id: str) -> bool:
        with self._lock:
            job = self._jobs.get(job_id)
            return bool(job and job.cancel_event.is_set())

    def cancel_event(self, job_id: str) -> Optional[threading.Event]:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.cancel_event if job else None

    def update_progress(self, job_id: str, percent: float = 0, message: str = "", total: int = None, current: int = None):
        """
        Update job progress.
        Throttled to max 1 update per second unless the change is significant.
        """
        now = time.time()

        calc_percent = float(percent)
        if total is not None:
            current_val = float(current if current is not None else percent)
            calc_percent = round((current_val / float(total) * 100) if total > 0 else 0, 1)

        with self._lock:
            job = self._jobs.get(job_id)
            if not job:
                return
            job.progress = {"percent": calc_percent, "message": message or job.progress.get("message", "")}

            last_time = self._last_update_time.get(job_id, 0)
            last_pct = self._last_progress.get(job_id, -1)
            is_first = last_time == 0
            is_critical = calc_percent <= 0 or calc_percent >= 100
            is_significant = abs(calc_percent - last_pct) >= 0.5
            time_passed = (now - last_time) >= 1.0
            if not (is_first or is_critical or (time_passed and is_significant)):
                return

            self._last_update_time[job_id] = now
            self._last_progress[job_id] = calc_percent

        self._emit_update(job)

    def _finish(self, job_id: str, status: str, result: Any = None, error: str = None):
        with self._lock:
            job = self._jobs.get(job_id)
            if not job:
                return
            job.status = status
            job.completed_at = now_utc()
            job.result = result
            job.error = error
            if status == JobStatus.COMPLETED:
                job.progress = {"percent": 100, "message": job.progress.get("message", "")}
            self._trim_history()
        self._emit_update(job)

    def complete_job(self, job_id: str, result: Any = None):
        self._finish(job_id, JobStatus.COMPLETED, result=result)
        logger.info(f"Completed job: {job_id}")

    def mark_cancelled(self, job_id: str, result: Any = None):
        self._finish(job_id, JobStatus.CANCELLED, result=result)
        logger.info(f"Cancelled job: {job_id}")

    def fail_job(self, job_id: str, error: str):
        self._finish(job_id, JobStatus.FAILED, error=str(error))
        logger.error(f"Job {job_id} failed: {error}")

    def get_job(self, job_id: str) -> Optional[Dict]:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.to_dict() if job else None

    def get_active_jobs(self) -> List[Dict]:
        with self._lock:
            return [j.to_dict() for j in self._jobs.values() if j.status in ACTIVE_STATUSES]

    def get_latest_job(self, job_type: str = None) -> Optional[Dict]:
        """Most recently registered job, optionally of one type"""
        with self._lock:
            jobs = [j for j in self._jobs.values() if job_type is None or j.job_type == job_type]
            return jobs[-1].to_dict() if jobs else None
