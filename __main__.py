#!/usr/bin/env python3
"""
NextMove - Main entry point.
"""

import sys
from pathlib import Path

# Ensure package is in path
sys.path.insert(0, str(Path(__file__).parent))

from cli.main import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
