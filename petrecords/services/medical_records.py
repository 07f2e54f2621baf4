from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from petrecords.core.config import Settings
from petrecords.models.medical import (
    Allergy,
    AllergyForm,
    Appointment,
    AppointmentForm,
    Medication,
    MedicationForm,
    Treatment,
    TreatmentForm,
    Vaccination,
    VaccinationForm,
    WeightRecord,
    WeightRecordForm,
)
from petrecords.models.pets import RecordKind
from petrecords.services.normalization import (
    NOT_SPECIFIED,
    FieldRule,
    as_date_text,
    as_float,
    as_text,
    as_weight_unit,
    today_iso,
)
from petrecords.services.record_service import AddressStyle, RecordDefinition, RecordService


def _vet() -> FieldRule:
    return FieldRule("veterinarian", ("veterinarian", "vet_name", "vetName"), NOT_SPECIFIED, coerce=as_text)


def _notes() -> FieldRule:
    return FieldRule("notes", ("notes", "note"), "", coerce=as_text)


VACCINATIONS: RecordDefinition[Vaccination, VaccinationForm] = RecordDefinition(
    segment="vaccinations",
    label="vaccination",
    entity_model=Vaccination,
    form_model=VaccinationForm,
    rules=(
        FieldRule("name", ("vaccineName", "vaccine_name", "name", "title"), "Unknown vaccine", coerce=as_text),
        FieldRule("date", ("vaccinationDate", "vaccination_date", "administered_at", "date"), "", coerce=as_date_text),
        _vet(),
    ),
)

# This backend revision addresses single appointments without the pet prefix.
APPOINTMENTS: RecordDefinition[Appointment, AppointmentForm] = RecordDefinition(
    segment="appointments",
    label="appointment",
    entity_model=Appointment,
    form_model=AppointmentForm,
    rules=(
        FieldRule("date", ("appointmentDate", "appointment_date", "date"), "", coerce=as_date_text),
        FieldRule("reason", ("reason", "title"), NOT_SPECIFIED, coerce=as_text),
        _vet(),
        _notes(),
    ),
    address_style=AddressStyle.FLAT,
)

TREATMENTS: RecordDefinition[Treatment, TreatmentForm] = RecordDefinition(
    segment="treatments",
    label="treatment",
    entity_model=Treatment,
    form_model=TreatmentForm,
    rules=(
        FieldRule("type", ("treatmentType", "treatment_type", "title"), NOT_SPECIFIED, coerce=as_text),
        FieldRule("description", ("description",), "", coerce=as_text),
        FieldRule("date", ("treatmentDate", "treatment_date", "date"), "", coerce=as_date_text),
        _vet(),
    ),
)

MEDICATIONS: RecordDefinition[Medication, MedicationForm] = RecordDefinition(
    segment="medications",
    label="medication",
    entity_model=Medication,
    form_model=MedicationForm,
    rules=(
        FieldRule("name", ("medicationName", "medication_name", "name", "title"), "Unknown medication", coerce=as_text),
        FieldRule("dosage", ("dosage",), NOT_SPECIFIED, coerce=as_text),
        FieldRule("frequency", ("frequency",), NOT_SPECIFIED, coerce=as_text),
        FieldRule("start_date", ("startDate", "start_date", "date"), "", coerce=as_date_text),
        FieldRule("end_date", ("endDate", "end_date"), None, coerce=as_date_text),
        FieldRule("prescribed_by", ("prescribedBy", "prescribed_by", "veterinarian"), NOT_SPECIFIED, coerce=as_text),
        _notes(),
    ),
    date_field="start_date",
)

ALLERGIES: RecordDefinition[Allergy, AllergyForm] = RecordDefinition(
    segment="allergies",
    label="allergy",
    entity_model=Allergy,
    form_model=AllergyForm,
    rules=(
        FieldRule("allergen", ("allergen", "name", "title"), "Unknown allergen", coerce=as_text),
        FieldRule("reaction", ("reaction", "symptoms"), NOT_SPECIFIED, coerce=as_text),
        FieldRule("severity", ("severity",), "Unknown", coerce=as_text),
        _notes(),
    ),
)

WEIGHT_RECORDS: RecordDefinition[WeightRecord, WeightRecordForm] = RecordDefinition(
    segment="weight-records",
    label="weight record",
    entity_model=WeightRecord,
    form_model=WeightRecordForm,
    rules=(
        FieldRule("weight", ("weight", "weightKg", "weight_kg"), 0.0, coerce=as_float),
        FieldRule("unit", ("unit",), "kg", coerce=as_weight_unit),
        FieldRule("date", ("recordDate", "record_date", "measured_at", "date"), today_iso, coerce=as_date_text),
        _notes(),
    ),
    sort_key=lambda record: record.date,
)

DEFINITIONS: dict[RecordKind, RecordDefinition[Any, Any]] = {
    RecordKind.VACCINE: VACCINATIONS,
    RecordKind.APPOINTMENT: APPOINTMENTS,
    RecordKind.TREATMENT: TREATMENTS,
    RecordKind.MEDICATION: MEDICATIONS,
    RecordKind.ALLERGY: ALLERGIES,
    RecordKind.WEIGHT: WEIGHT_RECORDS,
}


@dataclass(frozen=True)
class TimelineEntry:
    kind: RecordKind
    date: str
    record: BaseModel


class MedicalRecords:
    """The six medical-record services of one backend, plus cross-kind views."""

    def __init__(self, settings: Settings, address_styles: dict[RecordKind, AddressStyle] | None = None):
        styles = address_styles or {}
        self._services: dict[RecordKind, RecordService[Any, Any]] = {
            kind: RecordService(definition, settings, styles.get(kind))
            for kind, definition in DEFINITIONS.items()
        }
        self.vaccinations: RecordService[Vaccination, VaccinationForm] = self._services[RecordKind.VACCINE]
        self.appointments: RecordService[Appointment, AppointmentForm] = self._services[RecordKind.APPOINTMENT]
        self.treatments: RecordService[Treatment, TreatmentForm] = self._services[RecordKind.TREATMENT]
        self.medications: RecordService[Medication, MedicationForm] = self._services[RecordKind.MEDICATION]
        self.allergies: RecordService[Allergy, AllergyForm] = self._services[RecordKind.ALLERGY]
        self.weight_records: RecordService[WeightRecord, WeightRecordForm] = self._services[RecordKind.WEIGHT]

    def for_kind(self, kind: RecordKind | str) -> RecordService[Any, Any]:
        return self._services[RecordKind(kind)]

    async def timeline(self, pet_id: str) -> list[TimelineEntry]:
        """Every record of every kind for a pet, newest first.

        Kinds are fetched one after another; a kind that fails to load
        contributes nothing.
        """
        entries: list[TimelineEntry] = []
        for kind, service in self._services.items():
            for record in await service.list(pet_id):
                entries.append(
                    TimelineEntry(kind=kind, date=getattr(record, service.definition.date_field), record=record)
                )
        entries.sort(key=lambda entry: entry.date, reverse=True)
        return entries
