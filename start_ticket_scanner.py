#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
Ticket Scanner - Startup Script

Runs the command line scanner from a source checkout without installing it.
"""

import os
import sys

src_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "src"))
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from ticket_scanner.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
