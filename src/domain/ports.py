"""Domain Ports - Result Type, Error Taxonomy and Storage Contract.

This module defines the contracts shared by the domain core and its adapters:
the Result type used to report success or failure across the port boundary,
the exception hierarchy raised by validated fields, the patient collection and
the persistence codec, and the abstract StoragePort that file adapters implement.

Architecture:
    - Pure abstract interfaces with zero infrastructure dependencies
    - Domain code raises typed exceptions; ports and application services
      wrap them into Result objects for interactive callers
    - Adapters (JSON file storage, etc.) implement StoragePort
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, Optional, TypeVar, Union

if TYPE_CHECKING:
    from src.domain.enums import InputSource
    from src.domain.patient_collection import PatientCollection

# Type variable for Result generic
T = TypeVar('T')


# ============================================================================
# Result Type for Success/Failure Communication
# ============================================================================

@dataclass(frozen=True)
class Result(Generic[T]):
    """Result type for communicating success or failure without exceptions.

    Ports and application services return Result objects so that the
    interactive caller can surface a user-facing message instead of handling
    exceptions itself.

    Attributes:
        success: True if the operation succeeded, False otherwise
        value: The successful result value (only present if success=True)
        error: Error message (only present if success=False)
        error_type: Type of error (ValidationError, DuplicateIdError, etc.)
        error_details: Additional error context (field, patient_id, path, etc.)

    Example:
        ```python
        result = storage.load()
        if result.is_success():
            collection = result.value
        else:
            console.print(result.error)
        ```
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    error_details: Optional[dict] = None

    @classmethod
    def success_result(cls, value: T) -> 'Result[T]':
        """Create a successful result.

        Parameters:
            value: The successful result value

        Returns:
            Result: Success result with the value
        """
        return cls(
            success=True,
            value=value,
            error=None,
            error_type=None,
            error_details=None
        )

    @classmethod
    def failure_result(
        cls,
        error: Union[str, Exception],
        error_type: Optional[str] = None,
        error_details: Optional[dict] = None
    ) -> 'Result[T]':
        """Create a failure result.

        Parameters:
            error: Error message or exception
            error_type: Type of error (defaults to the exception class name)
            error_details: Additional context (field, patient_id, path, etc.)

        Returns:
            Result: Failure result with error information
        """
        error_message = str(error) if isinstance(error, Exception) else error
        error_type_name = error_type or (type(error).__name__ if isinstance(error, Exception) else "UnknownError")

        return cls(
            success=False,
            value=None,
            error=error_message,
            error_type=error_type_name,
            error_details=error_details or {}
        )

    def is_success(self) -> bool:
        """Check if result is successful."""
        return self.success

    def is_failure(self) -> bool:
        """Check if result is a failure."""
        return not self.success


# ============================================================================
# Custom Exception Hierarchy
# ============================================================================

class ClinicRecordsError(Exception):
    """Base exception for all clinic record errors."""
    pass


class ValidationError(ClinicRecordsError):
    """Raised when a raw value violates the format rule of a field.

    The message is the fixed, human-readable constraint message of the field
    kind, so it can be shown to the user as-is.

    Attributes:
        field_kind: Name of the field kind that failed (Name, Phone, ...)
        constraint_message: The constraint message of that field kind
    """

    def __init__(self, field_kind: str, constraint_message: str):
        super().__init__(constraint_message)
        self.field_kind = field_kind
        self.constraint_message = constraint_message


class MissingFieldError(ClinicRecordsError):
    """Raised when a required field is absent from stored data.

    Attributes:
        field_kind: Name of the missing field kind
    """

    MESSAGE_FORMAT = "Patient's {} field is missing!"

    def __init__(self, field_kind: str):
        super().__init__(self.MESSAGE_FORMAT.format(field_kind))
        self.field_kind = field_kind


class DuplicateIdError(ClinicRecordsError):
    """Raised when a patient Id already exists in the collection.

    Attributes:
        patient_id: The colliding Id
    """

    def __init__(self, patient_id: str):
        super().__init__(f"A patient with ID {patient_id} already exists")
        self.patient_id = patient_id


class NotFoundError(ClinicRecordsError):
    """Raised when no patient with the given Id exists.

    Attributes:
        patient_id: The Id that was looked up
    """

    def __init__(self, patient_id: str):
        super().__init__(f"No patient with ID {patient_id} exists")
        self.patient_id = patient_id


class BadAppointmentFormatError(ValidationError):
    """Raised when an appointment string cannot be parsed under its origin grammar.

    This is a ValidationError whose field kind is always Appointment, so
    callers that only care about field constraints can catch the parent class.

    Attributes:
        origin: The InputSource whose grammar rejected the string
    """

    def __init__(self, origin: 'InputSource', constraint_message: str):
        super().__init__("Appointment", constraint_message)
        self.origin = origin


class StorageIOError(ClinicRecordsError):
    """Raised when the data file cannot be read or written.

    Attributes:
        operation: The storage operation that failed (read, write, decode)
        path: The file path involved
    """

    def __init__(self, message: str, operation: Optional[str] = None, path: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.path = path


# ============================================================================
# Storage Port
# ============================================================================

class StoragePort(ABC):
    """Abstract contract for patient data storage adapters.

    Key Principles:
        - All-or-nothing: a load either yields a fully validated collection
          or a failure; a save either replaces the stored data or leaves it
          untouched
        - A missing data file is an empty collection, not an error
        - Corrupt data is reported, never silently discarded

    Example Usage:
        ```python
        storage = JsonStorageAdapter("data/patients.json")
        result = storage.load()
        if result.is_success():
            collection = result.value
            storage.save(collection)
        ```
    """

    @abstractmethod
    def load(self) -> Result['PatientCollection']:
        """Load the stored patient collection.

        Returns:
            Result[PatientCollection]: The validated collection, an empty
            collection if nothing is stored yet, or a failure describing the
            first invalid record or the I/O problem.
        """
        pass

    @abstractmethod
    def save(self, collection: 'PatientCollection') -> Result[int]:
        """Persist a snapshot of the patient collection.

        Parameters:
            collection: Collection to persist

        Returns:
            Result[int]: Number of records written, or a failure
        """
        pass

    def get_source_info(self) -> Optional[dict]:
        """Get metadata about the underlying store (optional, adapter-specific).

        Returns:
            Optional[dict]: Metadata dictionary, or None if unavailable
        """
        return None
