"""
Module execution entry point.

Allows running with: python -m pkpass_cli
"""

import sys
from pkpass_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
