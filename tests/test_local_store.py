import json
from datetime import datetime

import pytest
from pydantic import ValidationError
from redis.exceptions import ConnectionError as RedisConnectionError

from petrecords.models.errors import StorageError
from petrecords.models.pets import Gender, RecordKind
from petrecords.services.local_store import LocalPetStore
from tests.conftest import TEST_SETTINGS

BONCUK = {"name": "Boncuk", "age": 2, "gender": "erkek", "species": "kedi", "breed": "Tekir", "ownerId": 7}


@pytest.fixture
def store():
    return LocalPetStore(TEST_SETTINGS)


def _record(pet_id: str, kind: str, title: str, **extra) -> dict:
    return {"petId": pet_id, "type": kind, "title": title, "date": "2024-05-01", **extra}


async def test_add_pet_then_get_by_owner(store):
    created = await store.add_pet(BONCUK)

    pets = await store.get_pets_by_owner(7)

    assert pets == [created]
    pet = pets[0]
    assert pet.id
    assert pet.name == "Boncuk"
    assert pet.age == 2
    assert pet.gender == Gender.MALE == "erkek"
    assert pet.species == "kedi"
    assert pet.breed == "Tekir"
    assert pet.owner_id == 7
    assert datetime.fromisoformat(pet.created_at)


async def test_pets_are_persisted_as_one_camel_case_collection(store, kv_store):
    await store.add_pet(BONCUK)
    await store.add_pet({**BONCUK, "name": "Pamuk", "ownerId": 8, "gender": "female"})

    stored = json.loads(kv_store["user_pets"])

    assert [item["name"] for item in stored] == ["Boncuk", "Pamuk"]
    assert stored[1]["ownerId"] == 8
    assert stored[1]["gender"] == "dişi"
    assert "createdAt" in stored[0]


async def test_get_pets_by_owner_filters_other_owners(store):
    await store.add_pet(BONCUK)
    await store.add_pet({**BONCUK, "name": "Karabaş", "species": "köpek", "breed": "Kangal", "ownerId": 9})

    assert [p.name for p in await store.get_pets_by_owner(9)] == ["Karabaş"]
    assert await store.get_pets_by_owner(123) == []


async def test_get_pets_by_owner_empty_storage(store):
    assert await store.get_pets_by_owner(7) == []


async def test_get_pets_by_owner_unreadable_storage(store, kv_store):
    kv_store["user_pets"] = "{not json"

    assert await store.get_pets_by_owner(7) == []


async def test_get_pets_skips_invalid_items(store, kv_store):
    created = await store.add_pet(BONCUK)
    stored = json.loads(kv_store["user_pets"])
    stored.append({"id": "broken", "ownerId": 7})
    kv_store["user_pets"] = json.dumps(stored)

    assert await store.get_pets_by_owner(7) == [created]


async def test_add_pet_rejects_breed_of_other_species(store):
    with pytest.raises(ValidationError):
        await store.add_pet({**BONCUK, "breed": "Kangal"})


async def test_add_pet_rejects_unknown_species(store):
    with pytest.raises(ValidationError):
        await store.add_pet({**BONCUK, "species": "ejderha", "breed": "Diğer"})


async def test_add_pet_rejects_negative_age(store):
    with pytest.raises(ValidationError):
        await store.add_pet({**BONCUK, "age": -1})


async def test_update_pet_merges_partial_fields(store):
    created = await store.add_pet(BONCUK)

    updated = await store.update_pet(created.id, {"age": 3, "imageUrl": "file:///boncuk.jpg"})

    assert updated.age == 3
    assert updated.image_url == "file:///boncuk.jpg"
    assert updated.name == "Boncuk"
    assert updated.created_at == created.created_at
    assert await store.get_pet(created.id) == updated


async def test_update_pet_does_not_revalidate_breed(store):
    created = await store.add_pet(BONCUK)

    updated = await store.update_pet(created.id, {"breed": "Kangal"})

    assert updated.breed == "Kangal"


async def test_update_pet_not_found_returns_none(store):
    assert await store.update_pet("missing", {"age": 4}) is None


async def test_update_pet_cannot_change_owner(store):
    created = await store.add_pet(BONCUK)

    with pytest.raises(ValidationError):
        await store.update_pet(created.id, {"ownerId": 99})


async def test_delete_pet_cascades_to_health_records(store):
    pet = await store.add_pet(BONCUK)
    other = await store.add_pet({**BONCUK, "name": "Pamuk"})
    await store.add_health_record(_record(pet.id, "vaccine", "Kuduz"))
    await store.add_health_record(_record(pet.id, "weight", "Tartı", weight=4.2, unit="kg"))
    kept = await store.add_health_record(_record(other.id, "allergy", "Polen", severity="low"))

    assert await store.delete_pet(pet.id) is True

    assert await store.get_pet(pet.id) is None
    assert await store.get_health_records_by_pet(pet.id) == []
    assert await store.get_health_records_by_pet(other.id) == [kept]


async def test_delete_unknown_pet_still_cascades(store):
    await store.add_health_record(_record("ghost", "vaccine", "Kuduz"))

    assert await store.delete_pet("ghost") is False
    assert await store.get_health_records_by_pet("ghost") == []


async def test_delete_pet_keeps_pet_when_record_cascade_fails(store, redis_client):
    pet = await store.add_pet(BONCUK)
    await store.add_health_record(_record(pet.id, "vaccine", "Kuduz"))
    write = redis_client.set.side_effect

    async def _set(key, value):
        if key == "health_records":
            raise RedisConnectionError("down")
        return await write(key, value)

    redis_client.set.side_effect = _set

    with pytest.raises(StorageError) as exc_info:
        await store.delete_pet(pet.id)

    assert exc_info.value.key == "health_records"
    assert await store.get_pet(pet.id) == pet
    assert len(await store.get_health_records_by_pet(pet.id)) == 1

    redis_client.set.side_effect = write

    assert await store.delete_pet(pet.id) is True
    assert await store.get_pet(pet.id) is None
    assert await store.get_health_records_by_pet(pet.id) == []


async def test_records_by_kind_preserve_insertion_order(store):
    titles = [("vaccine", "Kuduz"), ("treatment", "Parazit"), ("vaccine", "Karma"), ("vaccine", "Lyme")]
    for kind, title in titles:
        await store.add_health_record(_record("p1", kind, title))
    await store.add_health_record(_record("p2", "vaccine", "Başka"))

    vaccines = await store.get_health_records_by_pet_and_kind("p1", "vaccine")

    assert [r.title for r in vaccines] == ["Kuduz", "Karma", "Lyme"]
    assert all(r.kind is RecordKind.VACCINE for r in vaccines)
    assert await store.get_health_records_by_pet_and_kind("p1", RecordKind.ALLERGY) == []


async def test_health_record_is_stored_with_type_key(store, kv_store):
    record = await store.add_health_record(_record("p1", "medication", "Antibiyotik", dosage="5 mg", nextDate="2024-06-01"))

    [stored] = json.loads(kv_store["health_records"])

    assert stored["type"] == "medication"
    assert stored["petId"] == "p1"
    assert stored["nextDate"] == "2024-06-01"
    assert stored["dosage"] == "5 mg"
    assert record.next_date == "2024-06-01"


async def test_update_health_record_merges_fields(store):
    record = await store.add_health_record(_record("p1", "appointment", "Kontrol", veterinarian="Dr. A"))

    updated = await store.update_health_record(record.id, {"description": "Yıllık", "nextDate": "2025-05-01"})

    assert updated.description == "Yıllık"
    assert updated.next_date == "2025-05-01"
    assert updated.veterinarian == "Dr. A"
    assert updated.kind is RecordKind.APPOINTMENT


async def test_update_health_record_kind_is_immutable(store):
    record = await store.add_health_record(_record("p1", "vaccine", "Kuduz"))

    with pytest.raises(ValidationError):
        await store.update_health_record(record.id, {"type": "treatment"})
    with pytest.raises(ValidationError):
        await store.update_health_record(record.id, {"petId": "p2"})


async def test_update_health_record_not_found_returns_none(store):
    assert await store.update_health_record("missing", {"title": "X"}) is None


async def test_delete_health_record(store):
    record = await store.add_health_record(_record("p1", "vaccine", "Kuduz"))

    assert await store.delete_health_record(record.id) is True
    assert await store.delete_health_record(record.id) is False
    assert await store.get_health_records_by_pet("p1") == []


async def test_mutation_refuses_to_overwrite_corrupt_collection(store, kv_store):
    kv_store["user_pets"] = "{not json"

    with pytest.raises(StorageError):
        await store.add_pet(BONCUK)

    assert kv_store["user_pets"] == "{not json"


async def test_write_failure_raises_storage_error(store, redis_client):
    redis_client.set.side_effect = RedisConnectionError("down")

    with pytest.raises(StorageError) as exc_info:
        await store.add_pet(BONCUK)

    assert exc_info.value.key == "user_pets"
