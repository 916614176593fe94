"""Locations of bundled resources and of files the viewer writes.

Bundled resources (config.json) are read from the application root. The log
file goes next to them when that directory is writable (portable mode) and
to the platform's user data directory otherwise.
"""

import os
import sys
from pathlib import Path
from typing import Tuple


APP_NAME = "PGNViewer"


def get_app_root() -> Path:
    """Get the directory holding pgnviewer.py and the viewer package.

    In a PyInstaller bundle this is the directory the data files were
    unpacked to instead.
    """
    if not getattr(sys, 'frozen', False):
        return Path(__file__).resolve().parent.parent.parent
    executable_dir = Path(sys.executable).parent
    if executable_dir.name == "MacOS":
        return executable_dir.parent / "Resources"
    return executable_dir / "_internal"


def has_write_access(directory: Path) -> bool:
    """Check if a file can be created in an existing directory."""
    probe = directory / f".{APP_NAME.lower()}_write_probe"
    try:
        probe.touch()
        probe.unlink()
    except OSError:
        return False
    return True


def get_user_data_directory() -> Path:
    """Get the per-user data directory (%APPDATA%, Application Support or XDG)."""
    if sys.platform == "win32":
        base = os.getenv("APPDATA") or str(Path.home() / "AppData" / "Roaming")
    elif sys.platform == "darwin":
        base = str(Path.home() / "Library" / "Application Support")
    else:
        base = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base) / APP_NAME


def resolve_data_file_path(filename: str) -> Tuple[Path, bool]:
    """Resolve where a file written by the viewer (e.g. the log) should go.

    Args:
        filename: Bare file name.

    Returns:
        Tuple of (path, is_portable_mode); portable mode means the file sits
        in the application root.
    """
    app_root = get_app_root()
    if app_root.is_dir() and has_write_access(app_root):
        return app_root / filename, True

    data_dir = get_user_data_directory()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / filename, False


def get_app_resource_path(relative_path: str) -> Path:
    """Get the path of a read-only resource, e.g. "viewer/config/config.json"."""
    return get_app_root() / relative_path
