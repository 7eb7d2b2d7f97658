"""
Entry point for running the package as a script.

Usage:
    python -m libheif_tools
"""

import sys

from .fetch_libheif import main

if __name__ == "__main__":
    sys.exit(main())
