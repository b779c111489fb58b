"""
Entry point for running repict as a module.

Usage:
    python -m repict_cli <image> -f <function> [args...]
"""

import sys

from repict_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
