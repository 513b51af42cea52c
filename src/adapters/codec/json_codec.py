"""JSON Persistence Codec.

Converts PatientRecords to and from the plain JSON structure stored in the
data file, and whole PatientCollections to and from the top-level
``{"persons": [...]}`` document.

Security Impact:
    - Every field read from disk is revalidated before a record is built
    - A single invalid record aborts the whole document, so partially valid
      data is never installed into the live model
    - Rejections are logged with the record index only, never field values

Architecture:
    - Pydantic models describe the on-disk shape (aliases keep the exact
      JSON field names); values stay raw JSON until to_model_type() checks
      them in a fixed order
    - Saving needs no validation because records are already valid
"""

import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

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
    ValidatedField,
)
from src.domain.patient_collection import PatientCollection
from src.domain.patient_record import PatientRecord
from src.domain.ports import (
    BadAppointmentFormatError,
    MissingFieldError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DOCUMENT_KEY = "persons"
DOCUMENT_FIELD_KIND = "Document"
MESSAGE_DOCUMENT_SHAPE = f"Patient data must be a JSON object with a '{DOCUMENT_KEY}' list"
MESSAGE_RECORD_SHAPE = "Each patient entry must be a JSON object"


def _require(field_class: type[ValidatedField], raw: Any) -> ValidatedField:
    """Build a required field from a raw JSON value, or raise."""
    if raw is None:
        raise MissingFieldError(field_class.FIELD_KIND)
    if not field_class.is_valid(raw):
        raise ValidationError(field_class.FIELD_KIND, field_class.MESSAGE_CONSTRAINTS)
    return field_class(raw)


class JsonAdaptedMedicalHistory(BaseModel):
    """On-disk form of one medical history entry: ``{"medicalHistory": "..."}``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    medical_history: Optional[Any] = Field(None, alias="medicalHistory")

    @classmethod
    def from_model(cls, entry: MedicalHistory) -> 'JsonAdaptedMedicalHistory':
        return cls(medical_history=entry.value)

    @classmethod
    def from_document(cls, raw: Any) -> 'JsonAdaptedMedicalHistory':
        if not isinstance(raw, dict):
            raise ValidationError(MedicalHistory.FIELD_KIND, MedicalHistory.MESSAGE_CONSTRAINTS)
        return cls.model_validate(raw)

    def to_model_type(self) -> MedicalHistory:
        return _require(MedicalHistory, self.medical_history)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class JsonAdaptedPatient(BaseModel):
    """On-disk form of one patient record.

    Field values are kept as raw JSON (any type, possibly null) so that
    to_model_type() can check them in the documented order:
    name, phone, email, address, id, medicalHistories, appointment, remark.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Optional[Any] = None
    id: Optional[Any] = None
    phone: Optional[Any] = None
    email: Optional[Any] = None
    address: Optional[Any] = None
    appointment: Optional[Any] = None
    medical_histories: Optional[Any] = Field(None, alias="medicalHistories")
    remark: Optional[Any] = None

    @classmethod
    def from_model(cls, source: PatientRecord) -> 'JsonAdaptedPatient':
        """Convert a valid record into its on-disk form."""
        return cls(
            name=source.name.value,
            id=source.patient_id.value if source.patient_id is not None else None,
            phone=source.phone.value,
            email=source.email.value,
            address=source.address.value,
            appointment=source.appointment.to_save_string() if source.appointment is not None else None,
            medical_histories=[
                JsonAdaptedMedicalHistory.from_model(entry).to_document()
                for entry in source.sorted_medical_histories()
            ],
            remark=source.remark.value or None,
        )

    @classmethod
    def from_document(cls, raw: Any) -> 'JsonAdaptedPatient':
        if not isinstance(raw, dict):
            raise ValidationError("Patient", MESSAGE_RECORD_SHAPE)
        return cls.model_validate(raw)

    def to_document(self) -> dict:
        """Plain dict with the exact on-disk field names.

        The appointment is always present (null when absent); the remark is
        only written when non-empty.
        """
        document = self.model_dump(by_alias=True)
        if document.get("remark") is None:
            document.pop("remark", None)
        return document

    def to_model_type(self) -> PatientRecord:
        """Validate every field and build the PatientRecord.

        Returns:
            PatientRecord: The reconstructed record

        Raises:
            MissingFieldError: If a required field is null or absent
            ValidationError: If a field is present but violates its constraints;
                an invalid appointment reports the Appointment constraint message
        """
        model_name = _require(Name, self.name)
        model_phone = _require(Phone, self.phone)
        model_email = _require(Email, self.email)
        model_address = _require(Address, self.address)
        model_id = _require(PatientId, self.id)

        model_histories = frozenset(self._medical_histories_to_model())
        model_appointment = self._appointment_to_model()

        if self.remark is not None and not Remark.is_valid(self.remark):
            raise ValidationError(Remark.FIELD_KIND, Remark.MESSAGE_CONSTRAINTS)
        model_remark = Remark(self.remark if self.remark is not None else "")

        return PatientRecord(
            name=model_name,
            patient_id=model_id,
            phone=model_phone,
            email=model_email,
            address=model_address,
            appointment=model_appointment,
            medical_histories=model_histories,
            remark=model_remark,
        )

    def _medical_histories_to_model(self) -> list[MedicalHistory]:
        if self.medical_histories is None:
            return []
        if not isinstance(self.medical_histories, list):
            raise ValidationError(MedicalHistory.FIELD_KIND, MedicalHistory.MESSAGE_CONSTRAINTS)
        return [
            JsonAdaptedMedicalHistory.from_document(raw_entry).to_model_type()
            for raw_entry in self.medical_histories
        ]

    def _appointment_to_model(self) -> Optional[Appointment]:
        if self.appointment is None:
            return None
        if not Appointment.is_valid_format(self.appointment, InputSource.STORAGE):
            raise ValidationError(Appointment.FIELD_KIND, Appointment.MESSAGE_CONSTRAINTS)
        try:
            return Appointment.parse(self.appointment, InputSource.STORAGE)
        except BadAppointmentFormatError as e:
            raise ValidationError(Appointment.FIELD_KIND, Appointment.MESSAGE_CONSTRAINTS) from e


class JsonPatientCodec:
    """Bidirectional mapping between PatientCollections and JSON documents.

    Example Usage:
        ```python
        codec = JsonPatientCodec()
        document = codec.serialize(collection)
        restored = codec.deserialize(document)
        assert restored == collection
        ```
    """

    def serialize_record(self, record: PatientRecord) -> dict:
        return JsonAdaptedPatient.from_model(record).to_document()

    def deserialize_record(self, raw: Any) -> PatientRecord:
        return JsonAdaptedPatient.from_document(raw).to_model_type()

    def serialize(self, collection: PatientCollection) -> dict:
        """Convert a collection into the top-level document.

        Parameters:
            collection: Collection of already-valid records

        Returns:
            dict: ``{"persons": [...]}`` in collection order
        """
        return {DOCUMENT_KEY: [self.serialize_record(record) for record in collection]}

    def deserialize(self, document: Any) -> PatientCollection:
        """Validate a document and build a new collection from it.

        The document is rejected as a whole on the first invalid record, so
        the caller never receives a partially populated collection.

        Parameters:
            document: Parsed JSON document

        Returns:
            PatientCollection: New collection holding every record, in order

        Raises:
            ValidationError: If the document shape or any field is invalid
            MissingFieldError: If any record lacks a required field
            DuplicateIdError: If two records share an Id
        """
        if not isinstance(document, dict):
            raise ValidationError(DOCUMENT_FIELD_KIND, MESSAGE_DOCUMENT_SHAPE)

        raw_persons = document.get(DOCUMENT_KEY)
        if raw_persons is None:
            raw_persons = []
        if not isinstance(raw_persons, list):
            raise ValidationError(DOCUMENT_FIELD_KIND, MESSAGE_DOCUMENT_SHAPE)

        records = []
        for index, raw in enumerate(raw_persons):
            try:
                records.append(self.deserialize_record(raw))
            except (ValidationError, MissingFieldError) as e:
                logger.warning(
                    f"Rejected patient data at index {index}: {type(e).__name__}",
                    extra={"context": {"index": index, "field": e.field_kind, "error_type": type(e).__name__}}
                )
                raise

        collection = PatientCollection()
        collection.set_all(records)
        logger.debug(f"Deserialized {len(collection)} patients")
        return collection
