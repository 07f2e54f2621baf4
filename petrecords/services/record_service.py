"""One CRUD service shape shared by every medical-record entity.

An entity is plugged in through a :class:`RecordDefinition`: its canonical
model, its form model, its normalization rules and its URL segment.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from pydantic import BaseModel

from petrecords.core.config import Settings
from petrecords.core.logging import get_logger
from petrecords.models.errors import RecordServiceError
from petrecords.services import api_client
from petrecords.services.api_client import ApiResult
from petrecords.services.normalization import FieldRule, local_id, normalize_record, record_id

EntityT = TypeVar("EntityT", bound=BaseModel)
FormT = TypeVar("FormT", bound=BaseModel)

log = get_logger("records")


class AddressStyle(str, Enum):
    NESTED = "nested"  # /pets/{pet_id}/medical-records/{segment}/{id}
    FLAT = "flat"  # /medical-records/{segment}/{id}
    ROOT = "root"  # /medical-records/{id}


@dataclass(frozen=True)
class RecordDefinition(Generic[EntityT, FormT]):
    segment: str
    label: str
    entity_model: type[EntityT]
    form_model: type[FormT]
    rules: tuple[FieldRule, ...]
    address_style: AddressStyle = AddressStyle.NESTED
    date_field: str = "date"
    sort_key: Callable[[EntityT], Any] | None = None

    def collection_path(self, pet_id: str) -> str:
        return f"/pets/{pet_id}/medical-records/{self.segment}"

    def item_path(self, pet_id: str, item_id: str, style: AddressStyle | None = None) -> str:
        style = style or self.address_style
        if style is AddressStyle.FLAT:
            return f"/medical-records/{self.segment}/{item_id}"
        if style is AddressStyle.ROOT:
            return f"/medical-records/{item_id}"
        return f"{self.collection_path(pet_id)}/{item_id}"


def _unwrap_object(body: Any) -> dict[str, Any] | None:
    if isinstance(body, dict):
        inner = body.get("data")
        return inner if isinstance(inner, dict) else body
    return None


def _unwrap_items(body: Any) -> list[Any] | None:
    """Return the list of raw items, [] for an empty body, None if malformed."""
    if body is None:
        return []
    if isinstance(body, list):
        return body
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        return body["data"]
    return None


class RecordService(Generic[EntityT, FormT]):
    def __init__(
        self,
        definition: RecordDefinition[EntityT, FormT],
        settings: Settings,
        address_style: AddressStyle | None = None,
    ):
        self.definition = definition
        self.settings = settings
        self.address_style = address_style or definition.address_style

    @property
    def label(self) -> str:
        return self.definition.label

    def _error(self, step: str, result: ApiResult, fallback: str | None = None) -> RecordServiceError:
        message = f"Could not {step} {self.label}: {result.error or fallback or 'unexpected response'}"
        return RecordServiceError(
            kind=self.label,
            step=step,
            message=message,
            status_code=result.status,
            request_id=result.request_id,
        )

    def _coerce_form(self, form: FormT | dict[str, Any]) -> FormT:
        if isinstance(form, self.definition.form_model):
            return form
        if isinstance(form, BaseModel):
            form = form.model_dump(by_alias=True)
        return self.definition.form_model.model_validate(form)

    def build_payload(self, form: FormT | dict[str, Any]) -> dict[str, Any]:
        """Wire payload for create/update: exactly the form's fields, camelCase."""
        return self._coerce_form(form).model_dump(mode="json", by_alias=True)

    def to_entity(
        self,
        raw: dict[str, Any],
        fallback: dict[str, Any] | None = None,
        item_id: str | None = None,
    ) -> EntityT:
        values = normalize_record(raw, self.definition.rules, fallback)
        values["id"] = item_id or record_id(raw) or local_id()
        return self.definition.entity_model.model_validate(values)

    async def _fetch(self, pet_id: str) -> list[EntityT]:
        result = await api_client.get(self.definition.collection_path(pet_id), self.settings)
        if not result.ok:
            raise self._error("list", result)

        items = _unwrap_items(result.data)
        if items is None:
            log.warning(
                "malformed_list_response",
                kind=self.label,
                pet_id=pet_id,
                body_type=type(result.data).__name__,
            )
            raise self._error("list", result, fallback="unexpected response shape")

        records: list[EntityT] = []
        seen: set[str] = set()
        for item in items:
            if not isinstance(item, dict):
                continue
            record = self.to_entity(item)
            if record.id in seen:
                continue
            seen.add(record.id)
            records.append(record)

        if self.definition.sort_key is not None:
            records.sort(key=self.definition.sort_key)
        return records

    async def list(self, pet_id: str, *, raise_errors: bool = False) -> list[EntityT]:
        """All records of this kind for a pet.

        Failures yield an empty list unless ``raise_errors`` is set, in which
        case a :class:`RecordServiceError` for the ``list`` step is raised.
        """
        try:
            return await self._fetch(pet_id)
        except RecordServiceError as exc:
            if raise_errors:
                raise
            log.warning(
                "record_list_failed",
                kind=self.label,
                pet_id=pet_id,
                status=exc.status_code,
                request_id=exc.request_id,
            )
            return []

    async def add(self, pet_id: str, form: FormT | dict[str, Any]) -> EntityT:
        payload = self.build_payload(form)
        result = await api_client.post(self.definition.collection_path(pet_id), payload, self.settings)
        if not result.ok:
            raise self._error("add", result)

        raw = _unwrap_object(result.data) or {}
        created_id = record_id(raw)
        if created_id is None:
            log.warning("created_record_without_id", kind=self.label, pet_id=pet_id, request_id=result.request_id)
        return self.to_entity(raw, fallback=payload, item_id=created_id)

    async def update(self, pet_id: str, item_id: str, form: FormT | dict[str, Any]) -> EntityT:
        payload = self.build_payload(form)
        path = self.definition.item_path(pet_id, item_id, self.address_style)
        result = await api_client.put(path, payload, self.settings)
        if not result.ok:
            raise self._error("update", result)

        raw = _unwrap_object(result.data) or {}
        return self.to_entity(raw, fallback=payload, item_id=str(item_id))

    async def delete(self, pet_id: str, item_id: str) -> bool:
        """Best-effort delete: True only when the backend confirmed it."""
        path = self.definition.item_path(pet_id, item_id, self.address_style)
        result = await api_client.delete(path, self.settings)
        if not result.ok:
            log.warning(
                "record_delete_failed",
                kind=self.label,
                pet_id=pet_id,
                record_id=item_id,
                status=result.status,
                request_id=result.request_id,
            )
            return False
        return True
