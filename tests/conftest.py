"""Shared fixtures for the Clinic Records test suite."""

from typing import Iterable, Optional

import pytest

from src.domain.enums import InputSource
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
from src.domain.patient_record import PatientRecord


def build_patient(
    name: str = "Alice Tan",
    patient_id: Optional[str] = "S1234A",
    phone: str = "91234567",
    email: str = "alice@example.com",
    address: str = "123 Clementi Road, #05-11",
    appointment: Optional[str] = None,
    medical_histories: Iterable[str] = (),
    remark: str = "",
) -> PatientRecord:
    """Build a valid PatientRecord; appointment is given in the storage grammar."""
    return PatientRecord(
        name=Name(name),
        patient_id=PatientId(patient_id) if patient_id is not None else None,
        phone=Phone(phone),
        email=Email(email),
        address=Address(address),
        appointment=Appointment.parse(appointment, InputSource.STORAGE) if appointment else None,
        medical_histories=[MedicalHistory(entry) for entry in medical_histories],
        remark=Remark(remark),
    )


@pytest.fixture
def make_patient():
    """Factory fixture returning build_patient."""
    return build_patient


@pytest.fixture
def sample_patients():
    """Three patients in a fixed insertion order."""
    return [
        build_patient(
            name="Alice Tan",
            patient_id="S1234A",
            appointment="2024-12-25 14:30",
            medical_histories=["Asthma", "Hypertension"],
        ),
        build_patient(
            name="Bob Lee",
            patient_id="T7654321B",
            phone="81234567",
            email="bob.lee@clinic-mail.sg",
            address="Blk 45 Jurong West St 42",
            remark="Prefers morning slots",
        ),
        build_patient(
            name="Charlie Goh",
            patient_id="G555C",
            phone="999",
            email="charlie+goh@example.org",
            address="8 Marina Boulevard",
        ),
    ]
