"""
Main entry point for running the package as a module.

Usage:
    python -m pandora config
    python -m pandora image -s photo.png
    python -m pandora sync
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
