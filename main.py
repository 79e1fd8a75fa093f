"""
Command-line entry point for quoting and calendar inspection.

Reads a JSON document describing the service, the formula, the month's
day snapshots and (for quotes) the booking request, and prints the result
as JSON.

Usage:
    Quote:    python main.py quote request.json
    Calendar: python main.py calendar request.json

Input document:
    {
      "today": "2026-11-03",
      "config": {...ServiceConfig...},
      "variant": {...ServiceVariant...},
      "snapshots": [{...DaySnapshot...}],
      "collective_slots": [{...CollectiveSlot...}],
      "request": {...BookingRequest...}
    }
"""

import json
import logging
import sys
from datetime import date

from pawbook.config import settings
from pawbook.engine import quote_booking
from pawbook.schemas import (
    BookingRequest,
    CollectiveSlot,
    DaySnapshot,
    ServiceConfig,
    ServiceVariant,
)
from pawbook.scheduling.calendar import build_month_calendar

logger = logging.getLogger(__name__)

USAGE = "usage: python main.py {quote|calendar} <document.json>"


def _load_document(path: str) -> dict:
    with open(path, encoding="utf-8") as handle:
        return json.load(handle)


def _run_quote(document: dict) -> dict:
    config = ServiceConfig.model_validate(document["config"])
    variant = ServiceVariant.model_validate(document["variant"])
    request = BookingRequest.model_validate(document["request"])
    today = date.fromisoformat(document["today"])
    calendar = {
        snap.date: snap
        for snap in (DaySnapshot.model_validate(s) for s in document.get("snapshots", []))
    }
    slots = {
        slot.id: slot
        for slot in (CollectiveSlot.model_validate(s) for s in document.get("collective_slots", []))
    }

    quote = quote_booking(request, config, variant, calendar, today, collective_slots=slots)
    return {
        "can_proceed": quote.can_proceed,
        "issues": [{"code": i.code.value, "message": i.message} for i in quote.issues],
        "breakdown": quote.breakdown.model_dump(mode="json") if quote.breakdown else None,
        "multi_unit_price": (
            quote.multi_unit_price.model_dump(mode="json") if quote.multi_unit_price else None
        ),
        "display_price": quote.display_price.model_dump(mode="json") if quote.display_price else None,
        "payload": quote.payload.model_dump(mode="json") if quote.payload else None,
    }


def _run_calendar(document: dict) -> list[dict]:
    config = ServiceConfig.model_validate(document["config"])
    variant = document.get("variant")
    today = date.fromisoformat(document["today"])
    snapshots = [DaySnapshot.model_validate(s) for s in document.get("snapshots", [])]
    calendar = build_month_calendar(
        snapshots,
        today,
        config,
        ServiceVariant.model_validate(variant) if variant else None,
    )
    return [day.model_dump(mode="json") for day in calendar]


def main(argv: list[str]) -> int:
    if len(argv) != 2 or argv[0] not in ("quote", "calendar"):
        print(USAGE, file=sys.stderr)
        return 2

    command, path = argv
    document = _load_document(path)
    logger.info("Running %s for %s (%s)", command, path, settings.platform_name)
    result = _run_quote(document) if command == "quote" else _run_calendar(document)
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
