#!/usr/bin/env python3
"""Entry point for the SARIF comment action; see sarif_comment.action."""

from sarif_comment.action import main

if __name__ == "__main__":
    raise SystemExit(main())
