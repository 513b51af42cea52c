"""Patient Record Aggregate.

A PatientRecord aggregates the validated field value objects of one patient.
Records are immutable: editing a patient produces a new record with the same
Id via with_changes().

Architecture:
    - Pure domain model; every attribute is an already-validated value object
    - Identity is the PatientId (is_same_patient); equality is structural so
      that a reloaded collection can be compared field by field
    - The Id is optional in memory but mandatory at the storage boundary
"""

from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.domain.fields import (
    Address,
    Appointment,
    Email,
    MedicalHistory,
    Name,
    PatientId,
    Phone,
    Remark,
)


class PatientRecord(BaseModel):
    """Validated data aggregate for one clinic patient.

    Parameters:
        name: Patient's full name
        patient_id: Unique identifier (may be None before the patient is stored)
        phone: Contact number
        email: Contact email address
        address: Home address
        appointment: Next appointment, or None if there is no upcoming appointment
        medical_histories: Set of medical history entries; duplicates collapse
        remark: Free-text remark, empty by default
    """

    model_config = ConfigDict(frozen=True)

    name: Name
    patient_id: Optional[PatientId] = None
    phone: Phone
    email: Email
    address: Address
    appointment: Optional[Appointment] = None
    medical_histories: frozenset[MedicalHistory] = Field(default_factory=frozenset)
    remark: Remark = Field(default_factory=lambda: Remark(""))

    @field_validator("medical_histories", mode="before")
    @classmethod
    def collapse_histories(cls, v) -> frozenset:
        """Accept any iterable of entries and collapse duplicates."""
        if v is None:
            return frozenset()
        return frozenset(v)

    def is_same_patient(self, other: Optional['PatientRecord']) -> bool:
        """Return True if other has the same Id as this record.

        Records without an Id are only the same patient as themselves.
        """
        if other is self:
            return True
        if other is None or self.patient_id is None or other.patient_id is None:
            return False
        return self.patient_id == other.patient_id

    def with_changes(self, **changes) -> 'PatientRecord':
        """Return a new record with the given attributes replaced.

        The new record is revalidated, so only value objects are accepted.
        """
        data = {field_name: getattr(self, field_name) for field_name in type(self).model_fields}
        data.update(changes)
        return type(self)(**data)

    def with_medical_histories(self, entries: Iterable[MedicalHistory]) -> 'PatientRecord':
        """Return a new record with entries added to the medical history set."""
        return self.with_changes(medical_histories=self.medical_histories | frozenset(entries))

    def sorted_medical_histories(self) -> list[MedicalHistory]:
        return sorted(self.medical_histories, key=lambda entry: entry.value)
