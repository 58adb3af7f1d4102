#!/usr/bin/env python3
"""perfload CLI entrypoint -- run without pip install.

Usage:
    python plrun.py upload ./downloads --metadata build.json
    python plrun.py --help
"""

import sys
from pathlib import Path

# Add src/ to import path so the perfload package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from perfload.cli import main

if __name__ == "__main__":
    main()
