#!/usr/bin/env python3
"""
Ledgerbook Entry Point

Opens the ledger files under ./data (or LEDGERBOOK_DATA_DIR) and starts
the interactive command loop.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from ledgerbook.cli import main


if __name__ == "__main__":
    try:
        sys.exit(main(sys.argv[1:]))
    except Exception as e:
        print(f"Error starting ledger: {e}")
        sys.exit(1)
