"""Domain layer for Clinic Records.

This module contains the validated patient model, the patient collection and
the keyword search predicates. All domain models are pure Python with no
external dependencies beyond Pydantic.
"""

from .enums import InputSource, SearchMode
from .fields import (
    Address,
    Appointment,
    Email,
    MedicalHistory,
    Name,
    PatientId,
    Phone,
    Remark,
)
from .patient_record import PatientRecord
from .patient_collection import PatientCollection, FilteredView, PREDICATE_SHOW_ALL
from .search import KeywordPredicate, build_predicate

__all__ = [
    "InputSource",
    "SearchMode",
    "Address",
    "Appointment",
    "Email",
    "MedicalHistory",
    "Name",
    "PatientId",
    "Phone",
    "Remark",
    "PatientRecord",
    "PatientCollection",
    "FilteredView",
    "PREDICATE_SHOW_ALL",
    "KeywordPredicate",
    "build_predicate",
]
