"""Client-side persistence for pets and their generic health records.

Each collection lives under a single key as one JSON array and is rewritten
in full on every mutation. There is no locking: one writer per collection
at a time is assumed.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any, Callable, TypeVar

from pydantic import BaseModel, ValidationError
from redis.exceptions import RedisError

from petrecords.core import redis as redis_store
from petrecords.core.config import Settings
from petrecords.core.logging import get_logger
from petrecords.models.errors import StorageError
from petrecords.models.pets import (
    HealthRecord,
    HealthRecordCreate,
    HealthRecordUpdate,
    Pet,
    PetCreate,
    PetUpdate,
    RecordKind,
)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)
Collection = list[dict[str, Any]]

log = get_logger("local_store")


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


def _parse(model: type[M], items: Collection) -> list[M]:
    parsed: list[M] = []
    for item in items:
        try:
            parsed.append(model.model_validate(item))
        except ValidationError:
            log.warning("storage_item_skipped", model=model.__name__, item_id=item.get("id"))
    return parsed


class LocalPetStore:
    def __init__(self, settings: Settings):
        self.pets_key = settings.PETS_KEY
        self.records_key = settings.HEALTH_RECORDS_KEY

    # --- collection primitives ---

    async def _read(self, key: str) -> Collection:
        """Lenient read: anything unreadable counts as an empty collection."""
        try:
            data = await redis_store.get_json(key)
        except (RedisError, ValueError) as exc:
            log.warning("storage_unreadable", key=key, error=str(exc))
            return []
        if not isinstance(data, list):
            if data is not None:
                log.warning("storage_unreadable", key=key, error="not a list")
            return []
        return [item for item in data if isinstance(item, dict)]

    async def _transaction(self, key: str, mutate: Callable[[Collection], T]) -> T:
        """Load the whole collection, let ``mutate`` change it in place, store it back.

        Refuses to run over a collection it cannot parse, so a corrupt value
        is never silently replaced.
        """
        try:
            data = await redis_store.get_json(key)
        except ValueError as exc:
            raise StorageError(key, "stored collection is not valid JSON") from exc
        except RedisError as exc:
            raise StorageError(key, f"read failed: {exc}") from exc
        if data is None:
            data = []
        if not isinstance(data, list):
            raise StorageError(key, "stored collection is not a list")

        result = mutate(data)
        try:
            await redis_store.set_json(key, data)
        except RedisError as exc:
            raise StorageError(key, f"write failed: {exc}") from exc
        return result

    # --- pets ---

    async def add_pet(self, data: PetCreate | dict[str, Any]) -> Pet:
        create = data if isinstance(data, PetCreate) else PetCreate.model_validate(data)
        pet = Pet(id=_new_id(), created_at=_now(), **create.model_dump())

        def mutate(pets: Collection) -> Pet:
            pets.append(_dump(pet))
            return pet

        return await self._transaction(self.pets_key, mutate)

    async def get_pets_by_owner(self, owner_id: int) -> list[Pet]:
        pets = await self._read(self.pets_key)
        return _parse(Pet, [item for item in pets if item.get("ownerId") == owner_id])

    async def get_pet(self, pet_id: str) -> Pet | None:
        for item in await self._read(self.pets_key):
            if item.get("id") == pet_id:
                found = _parse(Pet, [item])
                return found[0] if found else None
        return None

    async def update_pet(self, pet_id: str, fields: PetUpdate | dict[str, Any]) -> Pet | None:
        update = fields if isinstance(fields, PetUpdate) else PetUpdate.model_validate(fields)
        changes = update.model_dump(mode="json", by_alias=True, exclude_unset=True)

        def mutate(pets: Collection) -> Pet | None:
            for index, item in enumerate(pets):
                if item.get("id") == pet_id:
                    merged = Pet.model_validate({**item, **changes})
                    pets[index] = _dump(merged)
                    return merged
            return None

        return await self._transaction(self.pets_key, mutate)

    async def delete_pet(self, pet_id: str) -> bool:
        """Remove a pet and, unconditionally, every health record that references it.

        Records are removed before the pet, so a failed write never orphans them.
        """
        await self._delete_records_for_pet(pet_id)

        def mutate(pets: Collection) -> bool:
            before = len(pets)
            pets[:] = [item for item in pets if item.get("id") != pet_id]
            return len(pets) != before

        return await self._transaction(self.pets_key, mutate)

    # --- health records ---

    async def add_health_record(self, data: HealthRecordCreate | dict[str, Any]) -> HealthRecord:
        create = data if isinstance(data, HealthRecordCreate) else HealthRecordCreate.model_validate(data)
        record = HealthRecord(id=_new_id(), created_at=_now(), **create.model_dump())

        def mutate(records: Collection) -> HealthRecord:
            records.append(_dump(record))
            return record

        return await self._transaction(self.records_key, mutate)

    async def get_health_records_by_pet(self, pet_id: str) -> list[HealthRecord]:
        records = await self._read(self.records_key)
        return _parse(HealthRecord, [item for item in records if item.get("petId") == pet_id])

    async def get_health_records_by_pet_and_kind(
        self, pet_id: str, kind: RecordKind | str
    ) -> list[HealthRecord]:
        wanted = RecordKind(kind)
        return [record for record in await self.get_health_records_by_pet(pet_id) if record.kind is wanted]

    async def update_health_record(
        self, record_id: str, fields: HealthRecordUpdate | dict[str, Any]
    ) -> HealthRecord | None:
        update = fields if isinstance(fields, HealthRecordUpdate) else HealthRecordUpdate.model_validate(fields)
        changes = update.model_dump(mode="json", by_alias=True, exclude_unset=True)

        def mutate(records: Collection) -> HealthRecord | None:
            for index, item in enumerate(records):
                if item.get("id") == record_id:
                    merged = HealthRecord.model_validate({**item, **changes})
                    records[index] = _dump(merged)
                    return merged
            return None

        return await self._transaction(self.records_key, mutate)

    async def delete_health_record(self, record_id: str) -> bool:
        def mutate(records: Collection) -> bool:
            before = len(records)
            records[:] = [item for item in records if item.get("id") != record_id]
            return len(records) != before

        return await self._transaction(self.records_key, mutate)

    async def _delete_records_for_pet(self, pet_id: str) -> None:
        def mutate(records: Collection) -> None:
            records[:] = [item for item in records if item.get("petId") != pet_id]

        await self._transaction(self.records_key, mutate)
