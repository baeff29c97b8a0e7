"""
Steam adapter: libraryfolders.vdf + appmanifest_*.acf key/value manifests.
"""
import glob
import os
import sys
from typing import Dict, List, Optional

import structlog
import vdf

from nexuslib.candidates import CandidateGame, GameStatus, Mechanism
from nexuslib.exceptions import AdapterException
from nexuslib.scanners.base import SourceAdapter, path_exists

try:
    import winreg  # type: ignore
except ImportError:
    winreg = None

logger = structlog.get_logger("scanners.steam")


def _lower_keys(mapping):
    """VDF keys are case-insensitive in practice (AppState vs appstate)"""
    if not isinstance(mapping, dict):
        return {}
    return {str(k).lower(): v for k, v in mapping.items()}


def default_steam_roots() -> List[str]:
    if sys.platform.startswith("win"):
        return [
            "C:\\Program Files (x86)\\Steam",
            "C:\\Program Files\\Steam",
        ]
    home = os.path.expanduser("~")
    if sys.platform == "darwin":
        return [os.path.join(home, "Library", "Application Support", "Steam")]
    return [
        os.path.join(home, ".steam", "steam"),
        os.path.join(home, ".local", "share", "Steam"),
        os.path.join(home, ".var", "app", "com.valvesoftware.Steam", ".local", "share", "Steam"),
    ]


def registry_steam_path() -> Optional[str]:
    if winreg is None:
        return None
    try:
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, r"Software\Valve\Steam") as key:
            value = winreg.QueryValueEx(key, "SteamPath")[0]
            return str(value) if value else None
    except OSError as e:
        logger.debug(f"SteamPath not found in registry: {e}")
        return None


def parse_library_folders(path) -> List[str]:
    """Library roots listed in libraryfolders.vdf (both old and new layouts)"""
    with open(path, encoding="utf-8", errors="replace") as fh:
        data = _lower_keys(vdf.load(fh))

    folders = _lower_keys(data.get("libraryfolders"))
    paths = []
    for key, value in folders.items():
        if not key.isdigit():
            continue
        if isinstance(value, dict):
            entry_path = _lower_keys(value).get("path")
        else:
            entry_path = value
        if entry_path:
            paths.append(str(entry_path).replace("\\\\", "\\"))
    return paths


def parse_app_manifest(path) -> Optional[Dict[str, str]]:
    """appid/name/installdir from one appmanifest, None when incomplete"""
    with open(path, encoding="utf-8", errors="replace") as fh:
        data = _lower_keys(vdf.load(fh))

    state = _lower_keys(data.get("appstate"))
    appid = state.get("appid")
    name = state.get("name")
    installdir = state.get("installdir")
    if not appid or not name or not installdir:
        return None
    return {"appid": str(appid), "name": str(name), "installdir": str(installdir)}


class SteamAdapter(SourceAdapter):
    mechanism = Mechanism.STEAM

    def __init__(self, settings=None, steam_path=None):
        super().__init__(settings)
        self._steam_path = steam_path or (self.settings.get("paths", {}) or {}).get("steam")

    def detect_steam_path(self) -> Optional[str]:
        if self._steam_path:
            return self._steam_path if path_exists(self._steam_path) else None
        for candidate in [registry_steam_path()] + default_steam_roots():
            if candidate and path_exists(candidate):
                return candidate
        return None

    def library_paths(self, steam_path) -> List[str]:
        paths = [steam_path]
        folders_file = os.path.join(steam_path, "steamapps", "libraryfolders.vdf")
        if path_exists(folders_file):
            try:
                for path in parse_library_folders(folders_file):
                    if path not in paths:
                        paths.append(path)
            except (OSError, SyntaxError, ValueError) as e:
                logger.warning(f"Error reading libraryfolders.vdf: {e}")
        return paths

    def _scan(self):
        steam_path = self.detect_steam_path()
        if not steam_path and self._steam_path:
            # An unmounted configured root must not read as "nothing installed"
            raise AdapterException(f"Configured Steam path not found: {self._steam_path}", mechanism=self.name)
        if not steam_path:
            logger.info("Steam installation not found")
            return []

        games: Dict[str, CandidateGame] = {}
        for library_path in self.library_paths(steam_path):
            steamapps = os.path.join(library_path, "steamapps")
            if not os.path.isdir(steamapps):
                continue

            for acf_file in sorted(glob.glob(os.path.join(steamapps, "appmanifest_*.acf"))):
                try:
                    manifest = parse_app_manifest(acf_file)
                except (OSError, SyntaxError, ValueError) as e:
                    logger.warning(f"Skipping unreadable manifest {acf_file}: {e}")
                    continue
                if not manifest or manifest["appid"] in games:
                    continue
                if not self.accepts_title(manifest["name"]):
                    continue

                install_path = os.path.join(steamapps, "common", manifest["installdir"])
                games[manifest["appid"]] = self.make_candidate(
                    manifest["name"],
                    app_id=manifest["appid"],
                    install_path=install_path,
                    status=GameStatus.READY if path_exists(install_path) else GameStatus.MISSING,
                )

        return list(games.values())
