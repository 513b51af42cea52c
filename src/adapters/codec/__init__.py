"""Persistence codecs for Clinic Records."""

from src.adapters.codec.json_codec import (
    JsonAdaptedMedicalHistory,
    JsonAdaptedPatient,
    JsonPatientCodec,
)

__all__ = ["JsonAdaptedMedicalHistory", "JsonAdaptedPatient", "JsonPatientCodec"]
