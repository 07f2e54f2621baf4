from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

WeightUnit = Literal["kg", "lb"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _FormModel(BaseModel):
    # Unknown keys are dropped so client-only fields never reach the wire payload.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# --- Vaccinations ---


class Vaccination(_CamelModel):
    id: str
    name: str
    date: str
    veterinarian: str


class VaccinationForm(_FormModel):
    vaccine_name: str = Field(min_length=1, description="Name of the vaccine (e.g. 'Kuduz', 'Karma').")
    vaccination_date: dt.date = Field(description="Date the vaccine was administered (YYYY-MM-DD).")
    veterinarian: str = Field(min_length=1, description="Veterinarian or clinic that administered it.")


# --- Appointments ---


class Appointment(_CamelModel):
    id: str
    date: str
    reason: str
    veterinarian: str
    notes: str = ""


class AppointmentForm(_FormModel):
    appointment_date: dt.date = Field(description="Date of the appointment (YYYY-MM-DD).")
    reason: str = Field(min_length=1, description="Why the pet is seeing the vet.")
    veterinarian: str = Field(min_length=1)
    notes: str = ""


# --- Treatments ---


class Treatment(_CamelModel):
    id: str
    type: str
    description: str = ""
    date: str
    veterinarian: str


class TreatmentForm(_FormModel):
    treatment_type: str = Field(min_length=1, description="Kind of treatment (e.g. deworming, surgery).")
    description: str = ""
    treatment_date: dt.date
    veterinarian: str = Field(min_length=1)


# --- Medications ---


class Medication(_CamelModel):
    id: str
    name: str
    dosage: str
    frequency: str
    start_date: str
    end_date: str | None = None
    prescribed_by: str
    notes: str = ""


class MedicationForm(_FormModel):
    medication_name: str = Field(min_length=1)
    dosage: str = Field(min_length=1, description="Amount per dose, free text (e.g. '5 mg').")
    frequency: str = Field(min_length=1, description="How often it is given (e.g. 'twice a day').")
    start_date: dt.date
    end_date: dt.date | None = Field(default=None, description="Last day of the course. Omit for ongoing medication.")
    prescribed_by: str = Field(min_length=1)
    notes: str = ""


# --- Allergies ---


class Allergy(_CamelModel):
    id: str
    allergen: str
    reaction: str
    severity: str
    notes: str = ""


class AllergyForm(_FormModel):
    allergen: str = Field(min_length=1)
    reaction: str = Field(min_length=1)
    severity: str = Field(min_length=1)
    notes: str = ""


# --- Weight records ---


class WeightRecord(_CamelModel):
    id: str
    weight: float
    unit: WeightUnit = "kg"
    date: str
    notes: str = ""


class WeightRecordForm(_FormModel):
    weight: float = Field(gt=0, le=1000, description="Body weight in the given unit.")
    unit: WeightUnit = "kg"
    record_date: dt.date = Field(description="Date the weight was measured (YYYY-MM-DD).")
    notes: str = ""

    @field_validator("unit", mode="before")
    @classmethod
    def lower_unit(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value
