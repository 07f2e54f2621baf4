from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class Gender(str, Enum):
    MALE = "erkek"
    FEMALE = "dişi"


_GENDER_SYNONYMS = {"male": "erkek", "female": "dişi"}


def _normalize_gender(value: object) -> object:
    if isinstance(value, str):
        lowered = value.strip().lower()
        return _GENDER_SYNONYMS.get(lowered, lowered)
    return value


GenderInput = Annotated[Gender, BeforeValidator(_normalize_gender)]


class RecordKind(str, Enum):
    VACCINE = "vaccine"
    TREATMENT = "treatment"
    APPOINTMENT = "appointment"
    MEDICATION = "medication"
    ALLERGY = "allergy"
    WEIGHT = "weight"


# Species key -> allowed breeds. "Diğer" (other) is accepted for every species.
ANIMAL_SPECIES: dict[str, tuple[str, ...]] = {
    "köpek": (
        "Labrador Retriever", "Golden Retriever", "German Shepherd", "Bulldog", "Poodle",
        "Beagle", "Rottweiler", "Yorkshire Terrier", "Dachshund", "Siberian Husky",
        "Shih Tzu", "Boston Terrier", "Kangal", "Akbaş", "Diğer",
    ),
    "kedi": (
        "Persian", "Maine Coon", "British Shorthair", "Ragdoll", "Bengal", "Siamese",
        "Abyssinian", "Russian Blue", "Scottish Fold", "Sphynx", "Tekir", "Van Kedisi",
        "Ankara Kedisi", "Diğer",
    ),
    "kuş": (
        "Muhabbet Kuşu", "Kanarya", "Sultan Papağanı", "Cennet Papağanı", "Hint Bülbülü",
        "Java İspinozu", "Diğer",
    ),
    "balık": ("Goldfish", "Betta", "Guppy", "Neon Tetra", "Angelfish", "Discus", "Diğer"),
    "hamster": ("Suriye Hamsterı", "Roborovski", "Campbell", "Diğer"),
    "tavşan": ("Holland Lop", "Mini Rex", "Lionhead", "Netherland Dwarf", "Angora", "Diğer"),
}


def breeds_for_species(species: str) -> tuple[str, ...]:
    return ANIMAL_SPECIES.get(species.strip().lower(), ())


class _StoredModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Pets ---


class Pet(_StoredModel):
    id: str
    name: str
    age: int = Field(ge=0)
    gender: GenderInput
    species: str
    breed: str
    image_url: str | None = None
    created_at: str
    owner_id: int


class PetCreate(_StoredModel):
    name: str = Field(min_length=1)
    age: int = Field(ge=0, description="Age in whole years.")
    gender: GenderInput
    species: str = Field(min_length=1, description="Key into ANIMAL_SPECIES (e.g. 'kedi', 'köpek').")
    breed: str = Field(min_length=1)
    image_url: str | None = None
    owner_id: int

    @model_validator(mode="after")
    def check_breed(self) -> PetCreate:
        allowed = breeds_for_species(self.species)
        if not allowed:
            raise ValueError(f"Unknown species: {self.species}")
        if self.breed not in allowed:
            raise ValueError(f"Breed {self.breed!r} is not valid for species {self.species!r}")
        return self


class PetUpdate(_StoredModel):
    """Partial pet update. Breed is not re-validated against the species."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: str | None = Field(default=None, min_length=1)
    age: int | None = Field(default=None, ge=0)
    gender: GenderInput | None = None
    species: str | None = None
    breed: str | None = None
    image_url: str | None = None


# --- Generic health records ---


Severity = Literal["low", "medium", "high"]


class _HealthRecordDetails(_StoredModel):
    veterinarian: str | None = None
    dosage: str | None = None
    weight: float | None = None
    unit: str | None = None
    severity: Severity | None = None
    symptoms: str | None = None
    duration: str | None = None
    cost: float | None = None


class HealthRecord(_HealthRecordDetails):
    id: str
    pet_id: str
    kind: RecordKind = Field(alias="type")
    title: str
    description: str = ""
    date: str
    next_date: str | None = None
    created_at: str


class HealthRecordCreate(_HealthRecordDetails):
    pet_id: str
    kind: RecordKind = Field(alias="type")
    title: str = Field(min_length=1)
    description: str = ""
    date: str
    next_date: str | None = None


class HealthRecordUpdate(_HealthRecordDetails):
    """Partial record update. The kind and owning pet cannot change."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    date: str | None = None
    next_date: str | None = None
