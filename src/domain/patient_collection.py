"""Patient Collection - the in-memory model of all patient records.

The collection owns every PatientRecord, keeps them in insertion order and
guarantees that no two records share an Id. Searches never mutate it: they
read through a FilteredView that applies its predicate afresh on every read.

Architecture:
    - Pure domain logic with no infrastructure dependencies
    - Single-threaded by contract; mutated only by the session that owns it
    - Failures are raised as DuplicateIdError, NotFoundError or MissingFieldError
"""

import logging
from typing import Callable, Iterable, Iterator, Optional, Union

from src.domain.fields import PatientId
from src.domain.patient_record import PatientRecord
from src.domain.ports import DuplicateIdError, MissingFieldError, NotFoundError

logger = logging.getLogger(__name__)

Predicate = Callable[[PatientRecord], bool]


def PREDICATE_SHOW_ALL(record: PatientRecord) -> bool:
    """Predicate that matches every record."""
    return True


def _key(patient_id: Union[PatientId, str]) -> str:
    if isinstance(patient_id, PatientId):
        return patient_id.value
    return str(patient_id).strip().upper()


def _record_key(record: PatientRecord) -> str:
    if record.patient_id is None:
        raise MissingFieldError(PatientId.FIELD_KIND)
    return record.patient_id.value


class FilteredView:
    """Lazily evaluated, order-preserving view over a PatientCollection.

    Nothing is cached: iterating, indexing or taking len() re-applies the
    current predicate to the current contents of the collection.
    """

    def __init__(self, collection: 'PatientCollection', predicate: Predicate):
        self._collection = collection
        self._predicate = predicate

    @property
    def predicate(self) -> Predicate:
        return self._predicate

    def set_predicate(self, predicate: Predicate) -> None:
        self._predicate = predicate

    def __iter__(self) -> Iterator[PatientRecord]:
        predicate = self._predicate
        return (record for record in self._collection if predicate(record))

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __getitem__(self, index: int) -> PatientRecord:
        return list(self)[index]

    def __bool__(self) -> bool:
        return any(True for _ in self)

    def to_list(self) -> list[PatientRecord]:
        return list(self)

    def __repr__(self) -> str:
        return f"FilteredView(predicate={self._predicate!r}, size={len(self)})"


class PatientCollection:
    """Ordered, Id-unique collection of patient records.

    Ids are compared case-insensitively: lookups accept either a PatientId or
    a raw string, which is normalized to upper case.

    Example Usage:
        ```python
        collection = PatientCollection()
        collection.add(record)
        view = collection.filtered_view(build_predicate(["alice"], SearchMode.BY_NAME))
        names = [str(r.name) for r in view]
        ```
    """

    def __init__(self, records: Optional[Iterable[PatientRecord]] = None):
        self._records: dict[str, PatientRecord] = {}
        self._filtered = FilteredView(self, PREDICATE_SHOW_ALL)
        if records is not None:
            self.set_all(records)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[PatientRecord]:
        return iter(list(self._records.values()))

    def __contains__(self, patient_id: Union[PatientId, str]) -> bool:
        return _key(patient_id) in self._records

    def __eq__(self, other) -> bool:
        if not isinstance(other, PatientCollection):
            return NotImplemented
        return self.records() == other.records()

    __hash__ = None

    def __repr__(self) -> str:
        return f"PatientCollection(size={len(self)})"

    def contains(self, patient_id: Union[PatientId, str]) -> bool:
        return patient_id in self

    def records(self) -> list[PatientRecord]:
        """Snapshot of all records in insertion order."""
        return list(self._records.values())

    def get(self, patient_id: Union[PatientId, str]) -> PatientRecord:
        """Return the record with the given Id.

        Raises:
            NotFoundError: If no record has that Id
        """
        key = _key(patient_id)
        try:
            return self._records[key]
        except KeyError:
            raise NotFoundError(key) from None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, record: PatientRecord) -> None:
        """Append a record.

        Raises:
            MissingFieldError: If the record has no Id
            DuplicateIdError: If a record with the same Id already exists
        """
        key = _record_key(record)
        if key in self._records:
            raise DuplicateIdError(key)
        self._records[key] = record
        logger.debug(f"Added patient {key}")

    def remove(self, patient_id: Union[PatientId, str]) -> PatientRecord:
        """Remove and return the record with the given Id.

        Raises:
            NotFoundError: If no record has that Id
        """
        key = _key(patient_id)
        if key not in self._records:
            raise NotFoundError(key)
        record = self._records.pop(key)
        logger.debug(f"Removed patient {key}")
        return record

    def replace(self, patient_id: Union[PatientId, str], new_record: PatientRecord) -> None:
        """Replace the record with the given Id, keeping its position.

        The new record may carry a different Id as long as it does not
        collide with another existing record.

        Raises:
            NotFoundError: If no record has patient_id
            MissingFieldError: If new_record has no Id
            DuplicateIdError: If new_record's Id belongs to a different record
        """
        old_key = _key(patient_id)
        if old_key not in self._records:
            raise NotFoundError(old_key)
        new_key = _record_key(new_record)
        if new_key != old_key and new_key in self._records:
            raise DuplicateIdError(new_key)

        if new_key == old_key:
            self._records[old_key] = new_record
        else:
            self._records = {
                (new_key if key == old_key else key): (new_record if key == old_key else record)
                for key, record in self._records.items()
            }
        logger.debug(f"Replaced patient {old_key} with {new_key}")

    def set_all(self, records: Iterable[PatientRecord]) -> None:
        """Atomically replace the whole contents.

        The incoming sequence is validated first; on failure the current
        contents are left untouched.

        Raises:
            MissingFieldError: If any record has no Id
            DuplicateIdError: If the sequence repeats an Id
        """
        incoming: dict[str, PatientRecord] = {}
        for record in records:
            key = _record_key(record)
            if key in incoming:
                raise DuplicateIdError(key)
            incoming[key] = record
        self._records = incoming
        logger.debug(f"Replaced collection contents with {len(incoming)} patients")

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def filtered_view(self, predicate: Predicate) -> FilteredView:
        """Return a new lazily evaluated view of the records matching predicate."""
        return FilteredView(self, predicate)

    @property
    def filtered_patients(self) -> FilteredView:
        """The view driven by the current filter (show-all by default)."""
        return self._filtered

    def update_filtered_patients(self, predicate: Predicate) -> None:
        """Install predicate as the current filter."""
        self._filtered.set_predicate(predicate)
