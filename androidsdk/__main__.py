# SPDX-License-Identifier: MIT
"""
CLI: print the Android SDK catalog as JSON.

  python -m androidsdk [DIR] [--indent N] [-v]

Without DIR every SDK found in the usual locations is listed.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from .sdk import SDK, InvalidArgument, InvalidSDK, find_sdks

logger = logging.getLogger("androidsdk")


def _stream_handler() -> logging.Handler:
    h = logging.StreamHandler(sys.stderr)
    h.setFormatter(
        logging.Formatter("[%(asctime)s] [%(levelname)s] %(name)s – %(message)s")
    )
    return h


def _run(args: argparse.Namespace) -> int:
    if args.dir is None:
        data = [sdk.to_dict() for sdk in find_sdks()]
        logger.info("Found %d Android SDK(s)", len(data))
    else:
        try:
            data = SDK(args.dir).to_dict()
        except (InvalidArgument, InvalidSDK) as exc:
            logger.error("%s", exc)
            return 1

    print(json.dumps(data, indent=args.indent))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="androidsdk", description="Catalog an installed Android SDK"
    )
    ap.add_argument("dir", nargs="?", help="SDK directory (default: search the usual locations)")
    ap.add_argument("--indent", type=int, default=2, help="JSON indentation")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log skipped packages")
    args = ap.parse_args(argv)

    # handler and level only live for this call
    handler = _stream_handler()
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if args.verbose else logging.INFO)
    try:
        return _run(args)
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous_level)


if __name__ == "__main__":
    sys.exit(main())
