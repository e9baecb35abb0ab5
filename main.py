#!/usr/bin/env python3
"""Main entry point for SignInGuard."""

import sys

from signin_guard.cli import main


if __name__ == "__main__":
    sys.exit(main())
