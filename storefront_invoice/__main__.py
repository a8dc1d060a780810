"""Module entrypoint: run the invoice API server or render one order file."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

from .config import LOG_LEVEL
from .errors import InvoiceError
from .server import DependencyError, run
from .service import render


def render_file(path: str) -> str:
    """Render the ``{"order": ..., "customer": ...}`` document stored at ``path``."""
    with open(path, "r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise SystemExit(f"{path}: JSON root must be an object")
    return asyncio.run(render(payload.get("order"), payload.get("customer")))


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="storefront_invoice")
    parser.add_argument("order_file", nargs="?", help="render this order JSON file instead of serving")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.order_file:
        try:
            print(render_file(args.order_file))
        except (InvoiceError, OSError, ValueError) as exc:
            print(str(exc), file=sys.stderr)
            raise SystemExit(1) from exc
        return

    host = os.getenv("INVOICE_HOST", "0.0.0.0")
    port = int(os.getenv("INVOICE_PORT", "8080"))
    try:
        run(host, port)
    except DependencyError as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
