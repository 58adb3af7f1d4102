"""Resource path resolution for perfload.

Handles correct path resolution whether running from:
- Source tree (development)
- pip install (site-packages)
- PyInstaller bundle (frozen binary)
"""

from __future__ import annotations

import sys
from pathlib import Path


def _package_dir() -> Path:
    """Return the perfload package directory.

    Works in all execution contexts:
    - Development: src/perfload/
    - Installed: site-packages/perfload/
    - PyInstaller: sys._MEIPASS/perfload/
    """
    if getattr(sys, "frozen", False):
        # PyInstaller bundle -- data files extracted under _MEIPASS
        return Path(sys._MEIPASS) / "perfload"  # type: ignore[attr-defined]
    return Path(__file__).parent


def get_ddl_path() -> Path:
    """Return path to the packaged schema DDL script."""
    return _package_dir() / "store" / "ddl.sql"
