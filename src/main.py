"""Application service for Clinic Records.

This module wires the patient collection to its storage adapter. PatientBook
owns the live collection for one interactive session, persists it after
every successful mutation, and reports failures as Result objects carrying a
user-facing message.

Security Impact:
    - A data file that fails to load never produces a PatientBook, so corrupt
      data cannot be overwritten by saving an empty collection
    - Reloads install the new collection only after it fully validates

Architecture:
    - Follows Hexagonal Architecture principles
    - Storage adapter is configured via the configuration manager
    - Domain errors are converted into Result failures at this boundary
"""

import logging
from typing import Iterable, Optional

from pydantic import ValidationError as PydanticValidationError

from src.adapters.storage import JsonStorageAdapter
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
from src.domain.patient_collection import FilteredView, PatientCollection, Predicate
from src.domain.patient_record import PatientRecord
from src.domain.ports import (
    DuplicateIdError,
    MissingFieldError,
    NotFoundError,
    Result,
    StoragePort,
    ValidationError,
)
from src.infrastructure.config_manager import StorageConfig
from src.infrastructure.settings import settings

logger = logging.getLogger(__name__)

MESSAGE_PATIENTS_LISTED_OVERVIEW = "{} patients listed!"


def create_storage_adapter(storage_config: Optional[StorageConfig] = None) -> StoragePort:
    """Create storage adapter based on configuration.

    Parameters:
        storage_config: Explicit storage configuration (defaults to settings)

    Returns:
        StoragePort: Configured storage adapter instance
    """
    config = storage_config or settings.storage_config
    logger.info(f"Initializing JSON storage adapter with path: {config.data_file}")
    return JsonStorageAdapter(storage_config=config)


def parse_patient_input(
    name: str,
    patient_id: str,
    phone: str,
    email: str,
    address: str,
    appointment: Optional[str] = None,
    medical_histories: Iterable[str] = (),
    remark: str = ""
) -> Result[PatientRecord]:
    """Build a PatientRecord from raw strings typed by a user.

    The appointment, if given, is parsed with the USER_INPUT grammar.

    Returns:
        Result[PatientRecord]: The record, or the first constraint violation
    """
    try:
        record = PatientRecord(
            name=Name(name),
            patient_id=PatientId(patient_id),
            phone=Phone(phone),
            email=Email(email),
            address=Address(address),
            appointment=Appointment.parse(appointment, InputSource.USER_INPUT) if appointment else None,
            medical_histories=[MedicalHistory(entry) for entry in medical_histories],
            remark=Remark(remark),
        )
    except ValidationError as e:
        return Result.failure_result(e, error_type="ValidationError", error_details={"field": e.field_kind})
    return Result.success_result(record)


class PatientBook:
    """The live patient collection of one session, backed by a StoragePort.

    Example Usage:
        ```python
        result = PatientBook.open(create_storage_adapter())
        if result.is_failure():
            raise SystemExit(result.error)
        book = result.value
        book.add_patient(record)
        count = book.find(build_predicate(["alice"], SearchMode.BY_NAME)).value
        ```
    """

    def __init__(self, storage: StoragePort, collection: Optional[PatientCollection] = None):
        self._storage = storage
        self._collection = collection if collection is not None else PatientCollection()

    @classmethod
    def open(cls, storage: StoragePort) -> Result['PatientBook']:
        """Load the stored collection and open a book on it.

        Returns:
            Result[PatientBook]: The book, or the storage failure unchanged
        """
        load_result = storage.load()
        if load_result.is_failure():
            logger.error(f"Cannot open patient book: {load_result.error_type}")
            return Result.failure_result(
                load_result.error,
                error_type=load_result.error_type,
                error_details=load_result.error_details
            )
        return Result.success_result(cls(storage, load_result.value))

    @property
    def collection(self) -> PatientCollection:
        return self._collection

    @property
    def filtered_patients(self) -> FilteredView:
        return self._collection.filtered_patients

    def reload(self) -> Result[int]:
        """Reload from storage, replacing the collection only on success.

        The current filter is kept.

        Returns:
            Result[int]: Number of patients loaded, or the storage failure
        """
        load_result = self._storage.load()
        if load_result.is_failure():
            logger.warning(f"Reload failed, keeping {len(self._collection)} patients in memory")
            return Result.failure_result(
                load_result.error,
                error_type=load_result.error_type,
                error_details=load_result.error_details
            )
        self._collection.set_all(load_result.value)
        return Result.success_result(len(self._collection))

    def save(self) -> Result[int]:
        return self._storage.save(self._collection)

    def add_patient(self, record: PatientRecord) -> Result[PatientRecord]:
        """Add a patient and persist the collection."""
        snapshot = self._collection.records()
        try:
            self._collection.add(record)
        except (DuplicateIdError, MissingFieldError) as e:
            return Result.failure_result(e, error_details=self._details(e))
        return self._persist(record, snapshot)

    def delete_patient(self, patient_id: str) -> Result[PatientRecord]:
        """Delete the patient with the given Id and persist the collection."""
        snapshot = self._collection.records()
        try:
            removed = self._collection.remove(patient_id)
        except NotFoundError as e:
            return Result.failure_result(e, error_details=self._details(e))
        return self._persist(removed, snapshot)

    def edit_patient(self, target_id: str, /, **changes) -> Result[PatientRecord]:
        """Replace a patient with an edited copy and persist the collection.

        Parameters:
            target_id: Id of the patient to edit
            **changes: PatientRecord attributes to replace, as value objects;
                ``patient_id`` renames the patient

        Returns:
            Result[PatientRecord]: The edited record, or the failure
        """
        snapshot = self._collection.records()
        try:
            edited = self._collection.get(target_id).with_changes(**changes)
            self._collection.replace(target_id, edited)
        except (NotFoundError, DuplicateIdError, MissingFieldError) as e:
            return Result.failure_result(e, error_details=self._details(e))
        except PydanticValidationError as e:
            field = str(e.errors()[0]["loc"][0]) if e.errors() else "record"
            return Result.failure_result(
                f"Invalid value for {field}",
                error_type="ValidationError",
                error_details={"field": field}
            )
        return self._persist(edited, snapshot)

    def find(self, predicate: Predicate) -> Result[int]:
        """Install predicate as the current filter.

        Returns:
            Result[int]: Number of patients matching; format it with
            MESSAGE_PATIENTS_LISTED_OVERVIEW for display
        """
        self._collection.update_filtered_patients(predicate)
        count = len(self._collection.filtered_patients)
        logger.debug(f"Filter matched {count} patients")
        return Result.success_result(count)

    def _persist(self, value, snapshot: list[PatientRecord]):
        """Save the collection, restoring snapshot if the save fails."""
        save_result = self.save()
        if save_result.is_failure():
            self._collection.set_all(snapshot)
            logger.warning(f"Save failed, restored {len(snapshot)} patients in memory")
            return Result.failure_result(
                save_result.error,
                error_type=save_result.error_type,
                error_details=save_result.error_details
            )
        return Result.success_result(value)

    @staticmethod
    def _details(error: Exception) -> dict:
        details = {}
        for attribute in ("patient_id", "field_kind"):
            if hasattr(error, attribute):
                details[attribute] = getattr(error, attribute)
        return details
