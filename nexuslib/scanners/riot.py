"""
Riot Games adapter.

RiotClientInstalls.json maps client/product keys to install paths. The
conventional `Riot Games` folders are probed as well.
"""
import json
import os

import structlog

from nexuslib.candidates import GameStatus, Mechanism
from nexuslib.scanners.base import SourceAdapter, env_path, find_executable, path_exists, program_data
from nexuslib.titles import sanitize_identifier

logger = structlog.get_logger("scanners.riot")

# product id -> (title, executable)
RIOT_PRODUCTS = {
    "league_of_legends": ("League of Legends", "LeagueClient.exe"),
    "valorant": ("VALORANT", "VALORANT.exe"),
    "bacon": ("Legends of Runeterra", "LoR.exe"),
    "tft": ("Teamfight Tactics", "LeagueClient.exe"),
}

# folder name under a Riot Games root -> product id
RIOT_FOLDERS = {
    "League of Legends": "league_of_legends",
    "VALORANT": "valorant",
    "LoR": "bacon",
    "Legends of Runeterra": "bacon",
}


def default_riot_roots():
    roots = ["C:\\Riot Games", "D:\\Riot Games"]
    program_files = env_path("ProgramFiles", "Riot Games")
    if program_files:
        roots.append(program_files)
    return roots


def _iter_install_entries(node):
    """Yield (key, path) string pairs from an arbitrarily nested installs document"""
    if isinstance(node, dict):
        for key, value in node.items():
            if isinstance(value, str):
                yield str(key), value
            else:
                yield from _iter_install_entries(value)
    elif isinstance(node, list):
        for value in node:
            if isinstance(value, str):
                yield value, value
            else:
                yield from _iter_install_entries(value)


def _product_signatures():
    signatures = []
    for product_id, (title, _exe) in RIOT_PRODUCTS.items():
        signatures.append((sanitize_identifier(title), product_id))
        # Short codes such as "tft" occur inside unrelated words
        if len(product_id) >= 5:
            signatures.append((sanitize_identifier(product_id), product_id))
    return sorted(signatures, key=lambda item: len(item[0]), reverse=True)


_SIGNATURES = _product_signatures()


def match_product(text):
    """Product id whose title or code appears in `text`, longest signature first"""
    key = sanitize_identifier(text)
    for signature, product_id in _SIGNATURES:
        if signature and signature in key:
            return product_id
    return None


class RiotAdapter(SourceAdapter):
    mechanism = Mechanism.RIOT

    def __init__(self, settings=None, installs_file=None, roots=None):
        super().__init__(settings)
        self.installs_file = installs_file or os.path.join(program_data(), "Riot Games", "RiotClientInstalls.json")
        configured = (self.settings.get("paths", {}) or {}).get("riot") or []
        self.roots = roots if roots is not None else (list(configured) or default_riot_roots())

    def build_candidate(self, product_id, install_path):
        title, exe_name = RIOT_PRODUCTS[product_id]
        executable = find_executable(install_path, max_depth=4, name=exe_name)
        return self.make_candidate(
            title,
            app_id=product_id,
            install_path=install_path,
            executable_path=executable,
            status=GameStatus.READY if executable else GameStatus.MISSING,
        )

    def from_installs_file(self):
        if not path_exists(self.installs_file):
            return []

        with open(self.installs_file, encoding="utf-8") as fh:
            data = json.load(fh)

        found = {}
        for key, value in _iter_install_entries(data):
            # Either side may be the game folder; the other is often the client binary
            for text in (key, value):
                product_id = match_product(text)
                if not product_id or product_id in found:
                    continue
                install_path = text.replace("\\\\", "\\")
                if os.path.isfile(install_path):
                    install_path = os.path.dirname(install_path)
                if not os.path.isdir(install_path):
                    continue
                candidate = self.build_candidate(product_id, install_path)
                if candidate.is_ready:
                    found[product_id] = candidate
        return list(found.values())

    def from_roots(self):
        games = []
        for root in self.roots:
            if not root or not os.path.isdir(root):
                continue
            for folder, product_id in RIOT_FOLDERS.items():
                game_path = os.path.join(root, folder)
                if os.path.isdir(game_path):
                    games.append(self.build_candidate(product_id, game_path))
        return games

    def _scan(self):
        games = []
        try:
            games.extend(self.from_installs_file())
        except (OSError, ValueError) as e:
            logger.warning(f"Error reading Riot installs: {e}")
        games.extend(self.from_roots())

        # Each game once; the installs file wins over folder probing
        unique = {}
        for candidate in games:
            if candidate.title not in unique:
                unique[candidate.title] = candidate
        return list(unique.values())
