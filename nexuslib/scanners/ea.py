"""
EA app / Origin adapter: one folder per installed title.
"""
import os

import structlog

from nexuslib.candidates import GameStatus, Mechanism
from nexuslib.scanners.base import SourceAdapter, find_executable, program_data
from nexuslib.titles import clean_display_title

logger = structlog.get_logger("scanners.ea")

DEFAULT_EA_ROOTS = [
    "C:\\Program Files\\EA Games",
    "C:\\Program Files (x86)\\EA Games",
    "C:\\Program Files\\Electronic Arts",
    "C:\\Program Files (x86)\\Electronic Arts",
    "C:\\Program Files\\Origin Games",
    "C:\\Program Files (x86)\\Origin Games",
]


def default_ea_roots():
    return [
        os.path.join(program_data(), "EA Desktop", "InstallData"),
        os.path.join(program_data(), "Origin", "LocalContent"),
    ] + DEFAULT_EA_ROOTS


def is_skipped_folder(name):
    lowered = name.lower()
    return name.startswith(("_", ".")) or "redist" in lowered


class EAAdapter(SourceAdapter):
    mechanism = Mechanism.EA

    def __init__(self, settings=None, roots=None):
        super().__init__(settings)
        configured = (self.settings.get("paths", {}) or {}).get("ea") or []
        self.roots = roots if roots is not None else (list(configured) or default_ea_roots())

    def scan_root(self, root):
        games = []
        for entry in sorted(os.listdir(root)):
            folder = os.path.join(root, entry)
            if not os.path.isdir(folder) or is_skipped_folder(entry):
                continue

            title = clean_display_title(entry)
            if not self.accepts_title(title):
                continue

            # Folders without a game binary are leftovers, not installs
            executable = find_executable(folder, max_depth=2)
            if not executable:
                logger.debug(f"No executable under {folder}")
                continue

            games.append(
                self.make_candidate(
                    title,
                    install_path=folder,
                    executable_path=executable,
                    status=GameStatus.READY,
                )
            )
        return games

    def _scan(self):
        games = {}
        for root in self.roots:
            if not root or not os.path.isdir(root):
                continue
            try:
                for candidate in self.scan_root(root):
                    games.setdefault(candidate.canonical_key, candidate)
            except OSError as e:
                logger.warning(f"Error scanning EA directory {root}: {e}")
        return list(games.values())
