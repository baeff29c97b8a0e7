"""
Battle.net adapter.

Install folders under the conventional Battle.net/Blizzard roots are matched
against a product-code table, and Battle.net.config is read for explicit
InstallPath entries.
"""
import json
import os

import structlog

from nexuslib.candidates import GameStatus, Mechanism
from nexuslib.scanners.base import SourceAdapter, env_path, find_executable, path_exists
from nexuslib.titles import sanitize_identifier

logger = structlog.get_logger("scanners.battlenet")

BATTLENET_PRODUCTS = {
    "wow": "World of Warcraft",
    "wow_classic": "World of Warcraft Classic",
    "d3": "Diablo III",
    "fenris": "Diablo IV",
    "d4": "Diablo IV",
    "anbs": "Diablo Immortal",
    "pro": "Overwatch 2",
    "ow": "Overwatch",
    "heroes": "Heroes of the Storm",
    "hs": "Hearthstone",
    "s2": "StarCraft II",
    "s1": "StarCraft Remastered",
    "w3": "Warcraft III: Reforged",
    "viper": "Call of Duty: Black Ops Cold War",
    "fore": "Call of Duty: Vanguard",
    "zeus": "Call of Duty: Modern Warfare II",
    "rtro": "Blizzard Arcade Collection",
    "wlby": "Crash Bandicoot 4",
}

DEFAULT_BATTLENET_ROOTS = [
    "C:\\Program Files (x86)\\Battle.net",
    "C:\\Program Files\\Battle.net",
    "C:\\Program Files (x86)\\Blizzard Entertainment",
    "C:\\Program Files\\Blizzard Entertainment",
    "D:\\Games\\Battle.net",
    "D:\\Battle.net",
]


def match_folder(folder_name):
    """
    Product code for an install folder. The folder either is the product
    code itself or contains the product title (spaces and punctuation
    ignored). Longer titles win so "Overwatch 2" is not read as "Overwatch".
    """
    lowered = folder_name.lower()
    if lowered in BATTLENET_PRODUCTS:
        return lowered

    folder_key = sanitize_identifier(folder_name)
    ranked = sorted(BATTLENET_PRODUCTS.items(), key=lambda item: len(item[1]), reverse=True)
    for code, title in ranked:
        if sanitize_identifier(title) in folder_key:
            return code
    return None


def _find_install_paths(node, found=None):
    """Collect {product code: InstallPath} from a nested Battle.net.config document"""
    if found is None:
        found = {}
    if isinstance(node, dict):
        for key, value in node.items():
            code = str(key).lower()
            if code in BATTLENET_PRODUCTS and isinstance(value, dict):
                install_path = next(
                    (v for k, v in value.items() if str(k).lower() == "installpath" and isinstance(v, str)),
                    None,
                )
                if install_path and code not in found:
                    found[code] = install_path
            _find_install_paths(value, found)
    elif isinstance(node, list):
        for value in node:
            _find_install_paths(value, found)
    return found


class BattleNetAdapter(SourceAdapter):
    mechanism = Mechanism.BATTLENET

    def __init__(self, settings=None, roots=None, config_file=None):
        super().__init__(settings)
        configured = (self.settings.get("paths", {}) or {}).get("battlenet") or []
        self.roots = roots if roots is not None else (list(configured) or list(DEFAULT_BATTLENET_ROOTS))
        self.config_file = config_file or env_path("APPDATA", "Battle.net", "Battle.net.config")

    def build_candidate(self, code, install_path):
        if not path_exists(install_path):
            return None
        executable = find_executable(install_path, max_depth=2)
        return self.make_candidate(
            BATTLENET_PRODUCTS[code],
            app_id=code,
            install_path=install_path,
            executable_path=executable,
            status=GameStatus.READY if executable else GameStatus.MISSING,
        )

    def from_roots(self):
        games = []
        for root in self.roots:
            if not root or not os.path.isdir(root):
                continue
            for entry in sorted(os.listdir(root)):
                folder = os.path.join(root, entry)
                if not os.path.isdir(folder):
                    continue
                code = match_folder(entry)
                if code:
                    candidate = self.build_candidate(code, folder)
                    if candidate:
                        games.append(candidate)
        return games

    def from_config(self):
        if not path_exists(self.config_file):
            return []
        with open(self.config_file, encoding="utf-8") as fh:
            data = json.load(fh)

        games = []
        for code, install_path in _find_install_paths(data).items():
            candidate = self.build_candidate(code, install_path.replace("\\\\", "\\"))
            if candidate:
                games.append(candidate)
        return games

    def _scan(self):
        games = self.from_roots()
        try:
            games.extend(self.from_config())
        except (OSError, ValueError) as e:
            logger.warning(f"Error reading Battle.net.config: {e}")

        unique = {}
        for candidate in games:
            unique.setdefault(candidate.title, candidate)
        return list(unique.values())
