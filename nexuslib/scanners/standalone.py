"""
Standalone adapter: whitelisted titles that ship their own installer.

Install records come from an InstallRecordSource. On Windows that is the
Uninstall registry keys; elsewhere it is freedesktop `.desktop` entries.
"""
import configparser
import glob
import os
import re
import shlex
import sys
from dataclasses import dataclass
from typing import Iterable, List, Optional

import structlog

from nexuslib.candidates import GameStatus, Mechanism
from nexuslib.scanners.base import SourceAdapter, env_path, find_executable, path_exists
from nexuslib.titles import normalize_title

try:
    import winreg  # type: ignore
except ImportError:
    winreg = None

logger = structlog.get_logger("scanners.standalone")

# lowercase signature found in an install record name -> canonical title
KNOWN_STANDALONE_GAMES = {
    "minecraft launcher": "Minecraft",
    "minecraft dungeons": "Minecraft Dungeons",
    "minecraft legends": "Minecraft Legends",
    "roblox": "Roblox",
    "genshin impact": "Genshin Impact",
    "honkai: star rail": "Honkai: Star Rail",
    "honkai impact": "Honkai Impact 3rd",
    "zenless zone zero": "Zenless Zone Zero",
    "osu!": "osu!",
    "warframe": "Warframe",
    "path of exile": "Path of Exile",
    "escape from tarkov": "Escape From Tarkov",
    "escapefromtarkov": "Escape From Tarkov",
    "star citizen": "Star Citizen",
    "guild wars 2": "Guild Wars 2",
    "final fantasy xiv": "Final Fantasy XIV",
    "ffxiv": "Final Fantasy XIV",
    "phantasy star online 2": "Phantasy Star Online 2",
    "pso2": "Phantasy Star Online 2",
    "maplestory": "MapleStory",
    "lost ark": "Lost Ark",
    "black desert": "Black Desert Online",
    "albion online": "Albion Online",
    "old school runescape": "Old School RuneScape",
    "runescape": "RuneScape",
    "world of tanks": "World of Tanks",
    "world of warships": "World of Warships",
    "war thunder": "War Thunder",
    "crossfire": "CrossFire",
    "growtopia": "Growtopia",
    "rec room": "Rec Room",
    "vrchat": "VRChat",
    "tower of fantasy": "Tower of Fantasy",
    "wuthering waves": "Wuthering Waves",
    "the finals": "THE FINALS",
    "multiversus": "MultiVersus",
    "brawlhalla": "Brawlhalla",
    "trackmania": "Trackmania",
    "enlisted": "Enlisted",
    "smite": "SMITE",
    "paladins": "Paladins",
    "realm royale": "Realm Royale",
    "dauntless": "Dauntless",
    "neverwinter": "Neverwinter",
    "tera": "TERA",
    "blade & soul": "Blade & Soul",
    "aion": "Aion",
    "lineage": "Lineage",
    "elden ring": "Elden Ring",
    "armored core vi": "Armored Core VI",
    "dark souls": "Dark Souls",
    "sekiro": "Sekiro: Shadows Die Twice",
    "cyberpunk 2077": "Cyberpunk 2077",
    "the witcher 3": "The Witcher 3",
    "hogwarts legacy": "Hogwarts Legacy",
    "baldur's gate 3": "Baldur's Gate 3",
    "lethal company": "Lethal Company",
    "palworld": "Palworld",
    "satisfactory": "Satisfactory",
    "factorio": "Factorio",
}

# Longest signature first so "old school runescape" beats "runescape".
# Signatures must stand alone: "tera" never matches inside "literature".
_SIGNATURES = [
    (re.compile(r"(?<![a-z0-9])" + re.escape(signature) + r"(?![a-z0-9])"), title)
    for signature, title in sorted(KNOWN_STANDALONE_GAMES.items(), key=lambda item: len(item[0]), reverse=True)
]

UNINSTALL_KEYS = [
    ("HKEY_LOCAL_MACHINE", r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall"),
    ("HKEY_LOCAL_MACHINE", r"SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion\Uninstall"),
    ("HKEY_CURRENT_USER", r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall"),
]


def match_known_game(display_name) -> Optional[str]:
    lowered = (display_name or "").lower()
    for pattern, title in _SIGNATURES:
        if pattern.search(lowered):
            return title
    return None


@dataclass
class InstallRecord:
    display_name: str
    install_location: Optional[str] = None
    display_icon: Optional[str] = None


class InstallRecordSource:
    """Enumerates the host's registered installations"""

    def records(self) -> Iterable[InstallRecord]:
        raise NotImplementedError


class WindowsRegistrySource(InstallRecordSource):
    def __init__(self, keys=None):
        self.keys = keys or UNINSTALL_KEYS

    @staticmethod
    def _value(key, name):
        try:
            value = winreg.QueryValueEx(key, name)[0]
        except OSError:
            return None
        return str(value).strip() if value else None

    def records(self):
        if winreg is None:
            return

        for hive_name, path in self.keys:
            hive = getattr(winreg, hive_name)
            try:
                root = winreg.OpenKey(hive, path)
            except OSError:
                continue

            with root:
                index = 0
                while True:
                    try:
                        subkey_name = winreg.EnumKey(root, index)
                    except OSError:
                        break
                    index += 1
                    try:
                        with winreg.OpenKey(root, subkey_name) as subkey:
                            display_name = self._value(subkey, "DisplayName")
                            if not display_name:
                                continue
                            yield InstallRecord(
                                display_name=display_name,
                                install_location=self._value(subkey, "InstallLocation"),
                                display_icon=self._value(subkey, "DisplayIcon"),
                            )
                    except OSError as e:
                        logger.debug(f"Skipping registry key {subkey_name}: {e}")


def default_desktop_dirs():
    home = os.path.expanduser("~")
    return [
        os.path.join(home, ".local", "share", "applications"),
        "/usr/share/applications",
        "/var/lib/flatpak/exports/share/applications",
    ]


class DesktopEntrySource(InstallRecordSource):
    """freedesktop `.desktop` launchers as install records"""

    def __init__(self, directories=None):
        self.directories = directories or default_desktop_dirs()

    @staticmethod
    def parse_entry(path) -> Optional[InstallRecord]:
        parser = configparser.ConfigParser(interpolation=None, strict=False)
        parser.optionxform = str
        parser.read(path, encoding="utf-8")
        if not parser.has_section("Desktop Entry"):
            return None

        entry = parser["Desktop Entry"]
        name = entry.get("Name")
        if not name or entry.get("Type", "Application") != "Application":
            return None

        executable = None
        exec_line = entry.get("Exec")
        if exec_line:
            try:
                parts = shlex.split(exec_line)
            except ValueError:
                parts = exec_line.split()
            if parts:
                executable = parts[0]

        return InstallRecord(
            display_name=name.strip(),
            install_location=entry.get("Path") or (os.path.dirname(executable) if executable else None),
            display_icon=executable,
        )

    def records(self):
        for directory in self.directories:
            if not directory or not os.path.isdir(directory):
                continue
            for path in sorted(glob.glob(os.path.join(directory, "*.desktop"))):
                try:
                    record = self.parse_entry(path)
                except (OSError, configparser.Error, UnicodeDecodeError) as e:
                    logger.debug(f"Skipping desktop entry {path}: {e}")
                    continue
                if record:
                    yield record


def default_record_source(settings=None) -> InstallRecordSource:
    if sys.platform.startswith("win"):
        return WindowsRegistrySource()
    configured = ((settings or {}).get("paths", {}) or {}).get("desktop_entries") or []
    return DesktopEntrySource(list(configured) or None)


def executable_from_icon(display_icon) -> Optional[str]:
    """`"C:\\Game\\game.exe",0` -> C:\\Game\\game.exe when it exists"""
    if not display_icon:
        return None
    path = display_icon.split(",")[0].replace('"', "").strip()
    if not path or not path_exists(path) or os.path.isdir(path):
        return None
    if sys.platform.startswith("win") and not path.lower().endswith(".exe"):
        return None
    return path


def minecraft_launcher_paths() -> List[str]:
    paths = [
        env_path("ProgramFiles(x86)", "Minecraft Launcher", "MinecraftLauncher.exe"),
        env_path("ProgramFiles", "Minecraft Launcher", "MinecraftLauncher.exe"),
        env_path("LOCALAPPDATA", "Programs", "Minecraft Launcher", "MinecraftLauncher.exe"),
    ]
    return [p for p in paths if p]


class StandaloneAdapter(SourceAdapter):
    mechanism = Mechanism.STANDALONE

    def __init__(self, settings=None, record_source=None, known_paths=True):
        super().__init__(settings)
        self.record_source = record_source or default_record_source(self.settings)
        self.known_paths = known_paths

    def candidate_from_record(self, record: InstallRecord):
        title = match_known_game(record.display_name)
        if not title or not self.accepts_title(title):
            return None

        executable = executable_from_icon(record.display_icon)
        if not executable and record.install_location:
            executable = find_executable(record.install_location, max_depth=3)

        return self.make_candidate(
            title,
            install_path=record.install_location,
            executable_path=executable,
            status=GameStatus.READY if executable else GameStatus.MISSING,
        )

    def probe_minecraft(self):
        data_dir = env_path("APPDATA", ".minecraft")
        if not path_exists(data_dir):
            return None
        for exe in minecraft_launcher_paths():
            if path_exists(exe):
                return self.make_candidate(
                    "Minecraft",
                    install_path=data_dir,
                    executable_path=exe,
                    status=GameStatus.READY,
                )
        return None

    def _scan(self):
        games = []
        seen = set()

        for record in self.record_source.records():
            try:
                candidate = self.candidate_from_record(record)
            except OSError as e:
                logger.debug(f"Skipping install record {record.display_name}: {e}")
                continue
            if not candidate or candidate.normalized_title in seen:
                continue
            seen.add(candidate.normalized_title)
            games.append(candidate)

        if self.known_paths and normalize_title("Minecraft") not in seen:
            minecraft = self.probe_minecraft()
            if minecraft:
                seen.add(minecraft.normalized_title)
                games.append(minecraft)

        return games
