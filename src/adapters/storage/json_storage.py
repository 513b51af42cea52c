"""JSON File Storage Adapter.

This adapter implements the StoragePort contract on top of a single JSON data
file. It owns the file I/O boundary; all validation is delegated to the
JsonPatientCodec.

Security Impact:
    - A missing file starts an empty collection, but a present-but-corrupt
      file is reported as a failure and never overwritten
    - Writes go to a temporary file in the target directory and are moved
      into place with os.replace(), so the data file is replaced all at once
      or not at all
    - Patient field values are never logged

Architecture:
    - Implements StoragePort (Hexagonal Architecture)
    - Raw boundary (read_document/write_document) raises StorageIOError;
      load()/save() wrap every failure into a Result
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from src.adapters.codec.json_codec import JsonPatientCodec
from src.domain.patient_collection import PatientCollection
from src.domain.ports import (
    DuplicateIdError,
    MissingFieldError,
    Result,
    StorageIOError,
    StoragePort,
    ValidationError,
)
from src.infrastructure.config_manager import StorageConfig

logger = logging.getLogger(__name__)


class JsonStorageAdapter(StoragePort):
    """JSON file implementation of StoragePort.

    Parameters:
        storage_config: StorageConfig from the configuration manager (preferred)
        file_path: Path to the data file, used when no storage_config is given
        codec: Codec used to convert documents (defaults to JsonPatientCodec)

    Example Usage:
        ```python
        from src.infrastructure.config_manager import get_storage_config

        adapter = JsonStorageAdapter(storage_config=get_storage_config())
        result = adapter.load()
        if result.is_success():
            adapter.save(result.value)
        ```
    """

    def __init__(
        self,
        storage_config: Optional[StorageConfig] = None,
        file_path: Optional[Union[str, Path]] = None,
        codec: Optional[JsonPatientCodec] = None
    ):
        if storage_config is not None:
            self.file_path = Path(storage_config.data_file)
            self.indent = storage_config.indent
            self.encoding = storage_config.encoding
        elif file_path is not None:
            self.file_path = Path(file_path)
            self.indent = StorageConfig.model_fields["indent"].default
            self.encoding = StorageConfig.model_fields["encoding"].default
        else:
            raise ValueError("JsonStorageAdapter requires either storage_config or file_path")

        self.codec = codec or JsonPatientCodec()
        self.adapter_name = "json_storage"

    # ------------------------------------------------------------------
    # Raw document boundary
    # ------------------------------------------------------------------

    def read_document(self) -> Optional[Any]:
        """Read and parse the data file.

        Returns:
            The parsed JSON document, or None if the file does not exist

        Raises:
            StorageIOError: If the file cannot be read or is not valid JSON
        """
        if not self.file_path.exists():
            return None

        try:
            with open(self.file_path, 'r', encoding=self.encoding) as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise StorageIOError(
                f"Patient data file {self.file_path} is not valid JSON: {str(e)}",
                operation="decode",
                path=str(self.file_path)
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise StorageIOError(
                f"Cannot read patient data file {self.file_path}: {str(e)}",
                operation="read",
                path=str(self.file_path)
            ) from e

    def write_document(self, document: dict) -> None:
        """Write a document atomically.

        The document is written to a temporary file next to the data file and
        then moved over it. On any failure the temporary file is removed and
        the existing data file is left as it was.

        Raises:
            StorageIOError: If the directory or file cannot be written
        """
        tmp_name: Optional[str] = None
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.file_path.name}.",
                suffix=".tmp",
                dir=self.file_path.parent
            )
            with os.fdopen(fd, 'w', encoding=self.encoding) as f:
                json.dump(document, f, indent=self.indent, ensure_ascii=False)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.file_path)
        except OSError as e:
            raise StorageIOError(
                f"Cannot write patient data file {self.file_path}: {str(e)}",
                operation="write",
                path=str(self.file_path)
            ) from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # StoragePort
    # ------------------------------------------------------------------

    def load(self) -> Result[PatientCollection]:
        """Load and validate the stored collection.

        Returns:
            Result[PatientCollection]: Success with the collection (empty if the
            file does not exist yet), or a failure whose error_type names the
            problem (StorageIOError, ValidationError, MissingFieldError,
            DuplicateIdError)
        """
        try:
            document = self.read_document()
        except StorageIOError as e:
            logger.error(str(e))
            return Result.failure_result(
                e,
                error_type="StorageIOError",
                error_details={"path": str(self.file_path), "operation": e.operation}
            )

        if document is None:
            logger.info(f"No patient data file at {self.file_path}, starting with an empty collection")
            return Result.success_result(PatientCollection())

        try:
            collection = self.codec.deserialize(document)
        except (ValidationError, MissingFieldError, DuplicateIdError) as e:
            logger.error(f"Patient data file {self.file_path} is invalid: {type(e).__name__}")
            error_details = {"path": str(self.file_path)}
            if hasattr(e, "field_kind"):
                error_details["field"] = e.field_kind
            return Result.failure_result(e, error_details=error_details)

        logger.info(
            f"Loaded {len(collection)} patients from {self.file_path}",
            extra={"context": {"operation": "load", "count": len(collection), "path": str(self.file_path)}}
        )
        return Result.success_result(collection)

    def save(self, collection: PatientCollection) -> Result[int]:
        """Serialize and atomically write the collection.

        Returns:
            Result[int]: Number of records written, or a StorageIOError failure
        """
        document = self.codec.serialize(collection)
        try:
            self.write_document(document)
        except StorageIOError as e:
            logger.error(str(e))
            return Result.failure_result(
                e,
                error_type="StorageIOError",
                error_details={"path": str(self.file_path), "operation": e.operation}
            )

        logger.info(
            f"Saved {len(collection)} patients to {self.file_path}",
            extra={"context": {"operation": "save", "count": len(collection), "path": str(self.file_path)}}
        )
        return Result.success_result(len(collection))

    def get_source_info(self) -> Optional[dict]:
        """Get metadata about the data file.

        Returns:
            Optional[dict]: Format, size and encoding, or None if the file is absent
        """
        try:
            if self.file_path.exists():
                stat = self.file_path.stat()
                return {
                    'format': 'json',
                    'path': str(self.file_path),
                    'size': stat.st_size,
                    'encoding': self.encoding,
                    'exists': True,
                }
        except OSError as e:
            logger.warning(f"Cannot stat patient data file {self.file_path}: {str(e)}")

        return None
