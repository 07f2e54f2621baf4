#!/usr/bin/env python3

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
import time
from typing import Any

from petrecords.core import session
from petrecords.core.config import Settings, get_settings
from petrecords.core.logging import setup_logging
from petrecords.models.errors import RecordServiceError
from petrecords.services.medical_records import MedicalRecords


async def _run(settings: Settings, pet_id: str, token: str | None) -> dict[str, Any]:
    if token:
        await session.save_session(token, {"simulated": True}, settings)

    records = MedicalRecords(settings)
    stamp = int(time.time())
    summary: dict[str, Any] = {"pet_id": pet_id, "api_base": settings.API_BASE_URL, "steps": []}

    async def step(name: str, call: Any) -> Any:
        try:
            value = await call
        except RecordServiceError as exc:
            summary["steps"].append({"step": name, "ok": False, "status": exc.status_code, "message": exc.message})
            return None
        summary["steps"].append({"step": name, "ok": True})
        return value

    vaccination = await step(
        "add_vaccination",
        records.vaccinations.add(
            pet_id,
            {"vaccineName": f"Kuduz {stamp}", "vaccinationDate": "2026-02-20", "veterinarian": "Dr. Sim"},
        ),
    )
    weight = await step(
        "add_weight_record",
        records.weight_records.add(pet_id, {"weight": 4.2, "unit": "kg", "recordDate": "2026-02-25"}),
    )

    for kind, service in (("vaccinations", records.vaccinations), ("weight_records", records.weight_records)):
        items = await service.list(pet_id)
        summary["steps"].append({"step": f"list_{kind}", "ok": True, "count": len(items)})

    if vaccination is not None:
        deleted = await records.vaccinations.delete(pet_id, vaccination.id)
        summary["steps"].append({"step": "delete_vaccination", "ok": deleted})
    if weight is not None:
        deleted = await records.weight_records.delete(pet_id, weight.id)
        summary["steps"].append({"step": "delete_weight_record", "ok": deleted})

    timeline = await records.timeline(pet_id)
    summary["timeline"] = [{"kind": entry.kind.value, "date": entry.date} for entry in timeline]
    return summary


def main() -> int:
    parser = argparse.ArgumentParser(description="Exercise the medical-record services against a live backend.")
    parser.add_argument("--api-base", required=True, help="Backend base URL, e.g. http://localhost:8080/api.")
    parser.add_argument("--pet-id", required=True, help="Existing pet ID on the backend.")
    parser.add_argument("--token", default=None, help="Bearer token to persist before the run.")
    parser.add_argument("--redis-url", default="redis://localhost:6379", help="Key/value store holding the session.")
    args = parser.parse_args()

    # The key/value store reads its URL from the process settings.
    os.environ["API_BASE_URL"] = args.api_base
    os.environ["REDIS_URL"] = args.redis_url
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    summary = asyncio.run(_run(settings, args.pet_id, args.token))
    print(json.dumps(summary, ensure_ascii=False, indent=2))

    failed = [s for s in summary["steps"] if not s.get("ok")]
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
