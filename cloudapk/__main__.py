"""
Entry point for running cloudapk as a module: python -m cloudapk
"""

import sys

from cloudapk.build.orchestrator import main

if __name__ == "__main__":
    sys.exit(main())
