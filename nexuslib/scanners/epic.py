"""
Epic Games Launcher adapter: one JSON `.item` manifest per installed title.
"""
import glob
import json
import os

import structlog

from nexuslib.candidates import GameStatus, Mechanism
from nexuslib.scanners.base import SourceAdapter, program_data

logger = structlog.get_logger("scanners.epic")


def default_manifests_dir():
    return os.path.join(program_data(), "Epic", "EpicGamesLauncher", "Data", "Manifests")


class EpicAdapter(SourceAdapter):
    mechanism = Mechanism.EPIC

    def __init__(self, settings=None, manifests_dir=None):
        super().__init__(settings)
        self.manifests_dir = (
            manifests_dir
            or (self.settings.get("paths", {}) or {}).get("epic_manifests")
            or default_manifests_dir()
        )

    def parse_manifest(self, item_file):
        with open(item_file, encoding="utf-8") as fh:
            data = json.load(fh)

        display_name = (data.get("DisplayName") or "").strip()
        if not display_name or not self.accepts_title(display_name):
            return None

        app_name = data.get("AppName") or None
        install_location = data.get("InstallLocation") or None
        launch_executable = data.get("LaunchExecutable") or None

        executable_path = None
        if install_location and launch_executable:
            executable_path = os.path.join(install_location, launch_executable)

        # READY only when the launch executable exists
        return self.make_candidate(
            display_name,
            app_id=app_name,
            install_path=install_location,
            executable_path=executable_path,
            status=None if executable_path else GameStatus.MISSING,
        )

    def _scan(self):
        if not os.path.isdir(self.manifests_dir):
            logger.info(f"Epic manifests directory not found: {self.manifests_dir}")
            return []

        games = []
        for item_file in sorted(glob.glob(os.path.join(self.manifests_dir, "*.item"))):
            try:
                candidate = self.parse_manifest(item_file)
            except (OSError, ValueError) as e:
                logger.warning(f"Skipping unreadable Epic manifest {item_file}: {e}")
                continue
            if candidate:
                games.append(candidate)
        return games
