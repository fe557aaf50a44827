from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any, Dict, Sequence

from ..config import load_vision_config
from ..logging import get_logger, set_level
from ..orchestrator import (
    MissingApiKeyError,
    convert_to_food_items,
    extract_receipt_details,
    extract_store_from_receipt,
    parse_receipt_text,
    process_receipt_image,
)
from ..paths import expand_abs, find_project_root

LOG = get_logger("cli-main")


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _handle_parse(ns: argparse.Namespace) -> int:
    source = expand_abs(ns.source)
    if not os.path.isfile(source):
        LOG.error(f"Receipt text not found: {source}")
        return 2
    try:
        raw_text = _read_text(source)
    except (OSError, UnicodeDecodeError) as exc:
        LOG.error(f"Could not read {source}: {exc}")
        return 2

    receipt = parse_receipt_text(raw_text, store_hint=ns.store)
    out: Dict[str, Any] = receipt.as_dict()
    if not ns.include_raw:
        out.pop("rawText", None)
    if ns.location_id is not None and ns.user_id is not None:
        out["foodItems"] = convert_to_food_items(receipt.items, ns.location_id, ns.user_id)
    print(json.dumps(out, ensure_ascii=False, indent=2))

    if not receipt.items and not receipt.footer.total_amount:
        LOG.warning("Nothing recognized in the receipt text")
        return 1
    return 0


async def _run_vision(image_path: str) -> Dict[str, Any]:
    config = load_vision_config(find_project_root(os.getcwd()))
    LOG.info(f"Vision backend: {config.backend} model: {config.model}")
    items, store, details = await asyncio.gather(
        process_receipt_image(image_path, config=config),
        extract_store_from_receipt(image_path, config=config),
        extract_receipt_details(image_path, config=config),
    )
    return {"items": items, "store": store, "details": details}


def _handle_vision(ns: argparse.Namespace) -> int:
    source = expand_abs(ns.source)
    if not os.path.isfile(source):
        LOG.error(f"Receipt image not found: {source}")
        return 2
    try:
        result = asyncio.run(_run_vision(source))
    except MissingApiKeyError as exc:
        LOG.error(str(exc))
        return 2

    items = result["items"]
    out: Dict[str, Any] = {
        "store": result["store"].as_dict(),
        "details": result["details"].as_dict(),
        "items": [it.as_dict() for it in items],
    }
    if ns.location_id is not None and ns.user_id is not None:
        out["foodItems"] = convert_to_food_items(items, ns.location_id, ns.user_id)
    print(json.dumps(out, ensure_ascii=False, indent=2))

    if not items:
        LOG.warning("No items extracted from the image")
        return 1
    return 0


def _add_food_item_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--location-id", type=int, help="Storage location for food-item output")
    p.add_argument("--user-id", type=int, help="Owner for food-item output")


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with arguments: {provided}")

    parser = argparse.ArgumentParser(
        prog="pantry-receipts",
        description="Parse grocery receipts into structured line items.",
    )
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR (default: LOG_LEVEL or INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser("parse", help="Parse OCR'd receipt text with the store-specific parser.")
    parse_cmd.add_argument("--source", required=True, help="Path to a UTF-8 text file with the receipt text")
    parse_cmd.add_argument("--store", help="Store name; guessed from the text when omitted")
    parse_cmd.add_argument("--include-raw", action="store_true", help="Include the raw text in the JSON output")
    _add_food_item_args(parse_cmd)
    parse_cmd.set_defaults(handler=_handle_parse)

    vision_cmd = subparsers.add_parser("vision", help="Extract items, store and details from a receipt image.")
    vision_cmd.add_argument("--source", required=True, help="Path to the receipt image (JPG/PNG)")
    _add_food_item_args(vision_cmd)
    vision_cmd.set_defaults(handler=_handle_vision)

    args = parser.parse_args(provided)
    set_level(args.log_level)
    code = args.handler(args)
    LOG.info(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
