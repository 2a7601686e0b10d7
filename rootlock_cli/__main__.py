"""
Module execution entry point.

Allows running with: python -m rootlock_cli
"""

import sys
from rootlock_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
