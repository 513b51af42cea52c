"""Keyword search predicates over patient records.

build_predicate() turns a list of keywords and a SearchMode into a
KeywordPredicate. Predicates have value semantics: two predicates built from
the same mode and the same multiset of keywords compare equal, which lets
callers compare find requests directly.
"""

from typing import Iterable

from pydantic import BaseModel, ConfigDict, field_validator

from src.domain.enums import SearchMode
from src.domain.patient_record import PatientRecord


class KeywordPredicate(BaseModel):
    """Boolean test matching a record by name tokens or by exact Id.

    Attributes:
        mode: BY_NAME matches any whole name token, BY_ID matches the whole Id
        keywords: Keywords sorted so that equality ignores their order
    """

    model_config = ConfigDict(frozen=True)

    mode: SearchMode
    keywords: tuple[str, ...] = ()

    @field_validator("keywords", mode="before")
    @classmethod
    def normalize_keywords(cls, v) -> tuple:
        """Drop blank keywords and sort the rest."""
        if v is None:
            return ()
        if isinstance(v, str):
            v = [v]
        return tuple(sorted(keyword.strip() for keyword in v if keyword and keyword.strip()))

    def apply(self, record: PatientRecord) -> bool:
        """Return True if record matches any keyword.

        An empty keyword list matches nothing.
        """
        if not self.keywords:
            return False
        wanted = {keyword.casefold() for keyword in self.keywords}
        if self.mode is SearchMode.BY_ID:
            return record.patient_id is not None and record.patient_id.value.casefold() in wanted
        return any(token.casefold() in wanted for token in record.name.tokens)

    def __call__(self, record: PatientRecord) -> bool:
        return self.apply(record)


def build_predicate(keywords: Iterable[str], mode: SearchMode = SearchMode.BY_NAME) -> KeywordPredicate:
    """Build a search predicate from raw keyword tokens.

    Parameters:
        keywords: Keywords typed by the user
        mode: Whether to match against names or Ids

    Returns:
        KeywordPredicate: Predicate usable through apply(record)

    Example:
        ```python
        predicate = build_predicate(["alice", "bob"], SearchMode.BY_NAME)
        matches = collection.filtered_view(predicate)
        ```
    """
    return KeywordPredicate(mode=mode, keywords=keywords)
