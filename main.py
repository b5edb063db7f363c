#!/usr/bin/env python3
"""Run the voskfetch command line from a source checkout."""
import sys

from voskfetch.cli import main

if __name__ == '__main__':
    sys.exit(main())
