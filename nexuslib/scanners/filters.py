"""
Exclusion vocabularies shared by all source adapters.

Terms match case-insensitively on word boundaries so that "Demon's Souls"
or "SteamWorld Dig" are not mistaken for a demo or the Steam client.
"""
import re

# Installed software that is not a playable title
NON_TITLE_ARTIFACTS = (
    "proton",
    "steamworks",
    "redistributables?",
    "redist",
    "sdk",
    "directx",
    "vcredist",
    "runtime",
    "tools?",
    "soundtrack",
    "ost",
    "dedicated server",
    "demo",
    "benchmark",
    "unreal engine",
    "editor",
    "plugin",
)

# Host software that runs games; never a game itself
LAUNCHERS = (
    "launcher",
    "discord",
    "battle\\.net",
    "blizzard app",
    "ubisoft connect",
    "uplay",
    "origin",
    "ea app",
    "ea desktop",
    "gog galaxy",
    "steam",
    "epic games",
    "riot client",
    "rockstar games",
    "bethesda\\.net",
    "amazon games",
    "xbox app",
    "nvidia",
    "geforce",
    "amd software",
    "razer",
    "logitech",
    "steelseries",
    "corsair",
    "overwolf",
)

# Executable names that are never the game binary (plain substring)
EXECUTABLE_EXCLUSIONS = ("unins", "crash", "update", "redist", "setup", "installer", "helper")


def _compile(vocabulary):
    return re.compile(r"\b(?:" + "|".join(vocabulary) + r")\b", re.IGNORECASE)


_ARTIFACT_RE = _compile(NON_TITLE_ARTIFACTS)
_LAUNCHER_RE = _compile(LAUNCHERS)


def is_excluded_title(name):
    """True for tools, redistributables, SDKs, soundtracks, demos, servers"""
    return bool(name) and _ARTIFACT_RE.search(name) is not None


def is_launcher(name):
    return bool(name) and _LAUNCHER_RE.search(name) is not None


def is_excluded_executable(filename):
    lowered = (filename or "").lower()
    return any(term in lowered for term in EXECUTABLE_EXCLUSIONS)
