"""
Main entry point for the plate reduction tool.

Allows running: python -m platereduce <plate_url> [options]
"""

import sys
from platereduce.cli import main

if __name__ == "__main__":
    sys.exit(main())
