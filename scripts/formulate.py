#!/usr/bin/env python3
"""Local CLI entrypoint to generate a formula from a source checkout.

Usage:
  python scripts/formulate.py <module> [-p path] [-o path] [--config path]

This calls the same entry point as the installed ``node-formulator`` script.
"""

from __future__ import annotations

from node_formulator.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
