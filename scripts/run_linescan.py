#!/usr/bin/env python3
"""linescan pipeline runner.

Usage:
    python scripts/run_linescan.py scripts/user_config.py
    python scripts/run_linescan.py scripts/user_config.py --source 1
    python scripts/run_linescan.py scripts/user_config.py --mode live --max-runtime 5

Note: User config in scripts/user_config.py, expert defaults in linescan.schemas.param
"""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(project_root / "src"))

from linescan.cli.run_capture import main


if __name__ == "__main__":
    main()
