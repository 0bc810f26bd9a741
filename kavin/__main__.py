"""
Entry point for running kavin with ``python -m kavin``.
"""

import sys

from kavin.cli import main

if __name__ == '__main__':
    sys.exit(main())
