#!/usr/bin/env python3
"""Launcher script for greplog without installing the package.

Intended to be called by a monitoring agent on a fixed schedule:

    run_greplog.py /var/log/syslog syslog_errors "error|fail" 2 2 -s
"""

import sys
from pathlib import Path

# Add src to Python path
sys.path.insert(0, str(Path(__file__).parent / "src"))


def main():
    """Run greplog with the command line parameters."""
    from greplog.cli import main as greplog_main

    return greplog_main(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
