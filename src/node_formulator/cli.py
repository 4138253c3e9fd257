"""Generate a Homebrew node formula for the given node module.

Only npm registry hosted dependencies are supported. Git dependencies,
optionalDependencies and bundleDependencies are not supported for now.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import ConfigError, load_settings
from .core import generate_formula
from .hashing import HashFetchError
from .log import configure_logging
from .npm import NpmError
from .tree import StructuralError

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="node-formulator", description=__doc__)
    parser.add_argument("module", help="npm module to generate the formula for")
    parser.add_argument(
        "-p",
        "--path",
        type=Path,
        default=None,
        help=(
            "Use the existing node module at this path, with dependencies already "
            "installed by a supported npm, instead of installing it from the registry"
        ),
    )
    parser.add_argument(
        "-o",
        "--out",
        type=Path,
        default=None,
        help="Write the formula to this file instead of stdout",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a JSON settings file (default: $NODE_FORMULATOR_CONFIG)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = load_settings(args.config)
        formula = generate_formula(args.module, module_path=args.path, settings=settings)
    except ConfigError as exc:
        print(f"ERROR: Invalid configuration: {exc}", file=sys.stderr)
        return 1
    except StructuralError as exc:
        print(f"ERROR: Inconsistent dependency tree: {exc}", file=sys.stderr)
        return 1
    except (HashFetchError, NpmError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    if args.out is not None:
        try:
            args.out.write_text(formula, encoding="utf-8")
            args.out.chmod(0o644)
        except OSError as exc:
            print(f"ERROR: Failed to write formula: {exc}", file=sys.stderr)
            return 1
        logger.info("Formula written to %s", args.out)
    else:
        sys.stdout.write(formula)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
