"""
Base class and helpers for source adapters.

Each adapter reads one distribution mechanism's installation records and
returns CandidateGame objects. Adapters never touch the persisted catalog.
"""
import os
import time
from typing import Iterable, List, Optional

import structlog

from nexuslib.candidates import CandidateGame, GameStatus, Mechanism
from nexuslib.exceptions import AdapterException
from nexuslib.metrics import adapter_candidates_total, adapter_failures_total
from nexuslib.scanners.filters import is_excluded_executable, is_excluded_title, is_launcher

logger = structlog.get_logger("scanners")

EXECUTABLE_SUFFIXES = (".exe",)


def program_data():
    return os.environ.get("ProgramData") or "C:\\ProgramData"


def env_path(name, *parts):
    """Join parts under an environment directory, or None when unset"""
    base = os.environ.get(name)
    if not base:
        return None
    return os.path.join(base, *parts)


def path_exists(path):
    if not path:
        return False
    try:
        return os.path.exists(path)
    except (OSError, ValueError):
        return False


def resolve_status(path) -> GameStatus:
    """READY iff the resolved executable/install path exists right now"""
    return GameStatus.READY if path_exists(path) else GameStatus.MISSING


def find_executable(root, max_depth=2, name=None, suffixes=EXECUTABLE_SUFFIXES) -> Optional[str]:
    """
    Walk `root` up to `max_depth` levels and return the first plausible game
    binary. With `name`, only an exact (case-insensitive) filename matches.
    Uninstallers, crash reporters, updaters and installers are skipped.
    """
    if not root or not os.path.isdir(root):
        return None

    root = os.path.normpath(root)
    base_depth = root.count(os.sep)
    target = name.lower() if name else None

    for dirpath, dirnames, filenames in os.walk(root):
        depth = dirpath.count(os.sep) - base_depth
        if depth >= max_depth:
            dirnames[:] = []
        dirnames.sort()
        for filename in sorted(filenames):
            lowered = filename.lower()
            if target is not None:
                if lowered == target:
                    return os.path.join(dirpath, filename)
                continue
            if not lowered.endswith(suffixes):
                continue
            if is_excluded_executable(lowered):
                continue
            return os.path.join(dirpath, filename)
    return None


class SourceAdapter:
    """
    One distribution mechanism. Subclasses implement `_scan()`.

    `scan()` never raises: a failure of the whole adapter is logged and yields
    an empty list. Per-record problems are handled inside `_scan()` by
    skipping that record.
    """

    mechanism: Mechanism = None

    def __init__(self, settings=None):
        self.settings = settings or {}
        self.failed = False

    @property
    def name(self):
        return self.mechanism.value if self.mechanism else self.__class__.__name__

    def scan(self) -> List[CandidateGame]:
        started = time.monotonic()
        self.failed = False
        try:
            candidates = list(self._scan())
        except AdapterException as e:
            self.failed = True
            adapter_failures_total.labels(mechanism=self.name).inc()
            logger.warning(f"{self.name} scan failed: {e.message}")
            return []
        except Exception as e:
            self.failed = True
            adapter_failures_total.labels(mechanism=self.name).inc()
            logger.error(f"{self.name} scan failed: {e}", exc_info=True)
            return []

        adapter_candidates_total.labels(mechanism=self.name).inc(len(candidates))
        logger.info(
            f"Found {len(candidates)} {self.name} games",
            mechanism=self.name,
            elapsed=round(time.monotonic() - started, 3),
        )
        return candidates

    def _scan(self) -> Iterable[CandidateGame]:
        raise NotImplementedError

    def accepts_title(self, title) -> bool:
        """Adapter-level filtering policy: non-title artifacts and launchers"""
        if not title or not title.strip():
            return False
        if is_excluded_title(title):
            logger.debug(f"Skipping non-game entry: {title}")
            return False
        if is_launcher(title):
            logger.debug(f"Skipping launcher/tool: {title}")
            return False
        return True

    def make_candidate(self, title, app_id=None, install_path=None, executable_path=None, status=None):
        if status is None:
            status = resolve_status(executable_path or install_path)
        return CandidateGame(
            title=title.strip(),
            mechanism=self.mechanism,
            app_id=app_id,
            install_path=install_path,
            executable_path=executable_path,
            status=status,
        )
