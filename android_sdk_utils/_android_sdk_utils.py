from __future__ import annotations
import os, re, sys
from pathlib import Path
from typing import Mapping, Optional

# ---------- Executable naming ------------------------------------------------
def _is_windows() -> bool:
    return sys.platform.startswith("win")


def exe_name(stem: str) -> str:
    """Return the file name of a native binary (``emulator`` -> ``emulator.exe`` on Windows)."""
    return f"{stem}.exe" if _is_windows() else stem


def bat_name(stem: str) -> str:
    """Return the file name of a launcher script (``android`` -> ``android.bat`` on Windows)."""
    return f"{stem}.bat" if _is_windows() else stem


# ---------- Descriptor reader ------------------------------------------------
_PROP_RE = re.compile(r"^([^=]*)=\s*(.+)$")


def read_props(file: str | os.PathLike[str]) -> Optional[dict[str, str]]:
    """
    Parse a ``source.properties``-style ``key = value`` file.

    Returns ``None`` when the file does not exist, so callers can tell a
    missing descriptor from an empty one.  Lines that do not look like
    ``key = value`` (blank lines, comments, junk) are dropped and later keys
    overwrite earlier ones.
    """
    path = Path(file)
    if not path.is_file():
        return None

    props: dict[str, str] = {}
    # newline="" keeps "\r\n" intact so both conventions split the same way
    with path.open(encoding="utf-8", errors="replace", newline="") as fh:
        text = fh.read()
    for line in re.split(r"\r?\n", text):
        if m := _PROP_RE.match(line):
            props[m[1].strip()] = m[2].strip()
    return props


# ---------- Executable locator -----------------------------------------------
def find_executables(
    dir_: str | os.PathLike[str], exes: Mapping[str, str]
) -> dict[str, Optional[str]]:
    """
    Resolve each ``name -> relative path`` template against *dir_*.

    The result always has exactly the keys of *exes*; files that do not
    exist map to ``None``.
    """
    found: dict[str, Optional[str]] = {}
    for name, rel in exes.items():
        cand = os.path.join(dir_, rel)
        found[name] = cand if os.path.isfile(cand) else None
    return found


# ---------- Path expansion ---------------------------------------------------
_WIN_VAR_RE = re.compile(r"%([^%]+)%")


def expand_path(path: str | os.PathLike[str]) -> str:
    """Expand ``~``, ``$VAR`` and ``%VAR%`` tokens and return an absolute path."""
    raw = os.fspath(path)
    # %VAR% is expanded on every OS; unknown variables are left untouched
    raw = _WIN_VAR_RE.sub(lambda m: os.environ.get(m[1], m[0]), raw)
    raw = os.path.expandvars(os.path.expanduser(raw))
    return os.path.abspath(raw)


# ---------- SDK locations ----------------------------------------------------
SDK_LOCATIONS: dict[str, list[str]] = {
    "darwin": [
        "/opt",
        "/opt/local",
        "/usr",
        "/usr/local",
        "~",
        "~/Library/Android/sdk",
        "~/Android/Sdk",
    ],
    "linux": [
        "/opt",
        "/opt/local",
        "/usr",
        "/usr/local",
        "~",
        "~/Android/Sdk",
        "/opt/android-sdk",
    ],
    "win32": [
        "%SystemDrive%",
        "%ProgramFiles%",
        "%ProgramFiles(x86)%",
        "%CommonProgramFiles%",
        "~",
        "%LOCALAPPDATA%/Android/Sdk",
        "~/AppData/Local/Android/Sdk",
    ],
}


def _platform_key() -> str:
    if sys.platform.startswith("darwin"):
        return "darwin"
    if sys.platform.startswith("win"):
        return "win32"
    return "linux"


def _default_sdk_roots() -> list[Path]:
    """Return the expanded, de-duplicated default search locations for this OS."""
    roots: list[Path] = []
    for loc in SDK_LOCATIONS[_platform_key()]:
        p = Path(expand_path(loc))
        if p not in roots:
            roots.append(p)
    return roots


def candidate_sdk_roots() -> list[Path]:
    """
    Directories that may hold an Android SDK, highest priority first.

    Order (duplicates removed):
      1. $ANDROID_SDK_ROOT / $ANDROID_HOME
      2. User-supplied directories via FIND_ANDROID_EXTRA_DIRS (comma-separated)
      3. Typical default locations for the current platform, each followed
         by its immediate subdirectories
    """
    seen: list[Path] = []

    def add(p: Path) -> None:
        if p not in seen:
            seen.append(p)

    for var in ("ANDROID_SDK_ROOT", "ANDROID_HOME"):
        if value := os.getenv(var):
            add(Path(expand_path(value)))

    extra = os.getenv("FIND_ANDROID_EXTRA_DIRS", "")
    for root in map(str.strip, extra.split(",")):
        if root:
            add(Path(expand_path(root)))

    for root in _default_sdk_roots():
        if not root.is_dir():
            continue
        add(root)
        try:
            children = sorted(p for p in root.iterdir() if p.is_dir())
        except OSError:
            continue
        for child in children:
            add(child)
    return seen
