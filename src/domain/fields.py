"""Validated Field Value Objects.

This module defines the immutable value objects that make up a patient record.
Every field validates its raw input at construction time, so an instance can
never exist in an invalid state: invalid input raises the domain
ValidationError carrying the fixed constraint message of the field kind.

Architecture:
    - Pydantic V2 frozen models provide immutability and value equality
    - Pydantic validation failures are translated into the domain
      ValidationError at the field boundary
    - Appointment keeps one named grammar per InputSource; the grammars are
      independent rule sets and never share leniency flags
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, field_validator, ValidationError as PydanticValidationError

from src.domain.enums import InputSource
from src.domain.ports import BadAppointmentFormatError, Result, ValidationError


class ValidatedField(BaseModel):
    """Base class for single-string fields validated by a regular expression.

    Subclasses set FIELD_KIND, MESSAGE_CONSTRAINTS and VALIDATION_REGEX, and may
    override normalize() to canonicalize the accepted string.
    """

    model_config = ConfigDict(frozen=True)

    FIELD_KIND: ClassVar[str] = "Field"
    MESSAGE_CONSTRAINTS: ClassVar[str] = "Field values should not be blank"
    VALIDATION_REGEX: ClassVar[re.Pattern] = re.compile(r"\S.*", re.DOTALL)

    value: str

    def __init__(self, value: str, **data):
        try:
            super().__init__(value=value, **data)
        except PydanticValidationError as e:
            raise ValidationError(type(self).FIELD_KIND, type(self).MESSAGE_CONSTRAINTS) from e

    @field_validator("value", mode="before")
    @classmethod
    def check_constraints(cls, v):
        """Reject anything that is not a string matching VALIDATION_REGEX."""
        if not isinstance(v, str) or not cls.is_valid(v):
            raise ValueError(cls.MESSAGE_CONSTRAINTS)
        return cls.normalize(v)

    @classmethod
    def is_valid(cls, raw: str) -> bool:
        """Return True if raw satisfies this field's format rule."""
        return isinstance(raw, str) and cls.VALIDATION_REGEX.fullmatch(raw) is not None

    @classmethod
    def normalize(cls, raw: str) -> str:
        return raw

    @classmethod
    def create(cls, raw: str) -> 'Result[ValidatedField]':
        """Construct the field without raising.

        Parameters:
            raw: Raw string to validate

        Returns:
            Result: Success with the field, or failure carrying the constraint message
        """
        try:
            return Result.success_result(cls(raw))
        except ValidationError as e:
            return Result.failure_result(e, error_details={"field": e.field_kind})

    def __str__(self) -> str:
        return self.value


class Name(ValidatedField):
    """A patient's full name. Case is preserved."""

    FIELD_KIND = "Name"
    MESSAGE_CONSTRAINTS = "Names should only contain alphanumeric characters and spaces, and it should not be blank"
    VALIDATION_REGEX = re.compile(r"[A-Za-z0-9][A-Za-z0-9 ]*")

    @property
    def tokens(self) -> list[str]:
        """Whitespace-separated words of the name."""
        return self.value.split()


class PatientId(ValidatedField):
    """Unique patient identifier such as ``S872D``.

    Accepted case-insensitively and stored upper case.
    """

    FIELD_KIND = "Id"
    MESSAGE_CONSTRAINTS = (
        "IDs should start with a letter, followed by 3 to 7 digits, "
        "and end with a checksum letter, e.g. S872D"
    )
    VALIDATION_REGEX = re.compile(r"[A-Za-z]\d{3,7}[A-Za-z]")

    @classmethod
    def normalize(cls, raw: str) -> str:
        return raw.upper()


class Phone(ValidatedField):
    FIELD_KIND = "Phone"
    MESSAGE_CONSTRAINTS = "Phone numbers should only contain digits, and they should be between 3 and 15 digits long"
    VALIDATION_REGEX = re.compile(r"\d{3,15}")


_ALPHANUMERIC = r"[A-Za-z0-9]+"
_LOCAL_PART = rf"{_ALPHANUMERIC}([+_.\-]{_ALPHANUMERIC})*"
_DOMAIN_PART = rf"{_ALPHANUMERIC}(-{_ALPHANUMERIC})*"
_DOMAIN_LAST_PART = r"[A-Za-z0-9]{2,}(-[A-Za-z0-9]+)*"


class Email(ValidatedField):
    """Email address of the form local-part@domain."""

    FIELD_KIND = "Email"
    MESSAGE_CONSTRAINTS = (
        "Emails should be of the format local-part@domain and adhere to the following constraints:\n"
        "1. The local-part should only contain alphanumeric characters and these special characters, "
        "excluding the parentheses, (+_.-). The local-part may not start or end with any special characters.\n"
        "2. This is followed by a '@' and then a domain name. The domain name is made up of domain labels "
        "separated by periods.\n"
        "The domain name must:\n"
        "    - end with a domain label at least 2 characters long\n"
        "    - have each domain label start and end with alphanumeric characters\n"
        "    - have each domain label consist of alphanumeric characters, separated only by hyphens, if any."
    )
    VALIDATION_REGEX = re.compile(rf"{_LOCAL_PART}@({_DOMAIN_PART}\.)*{_DOMAIN_LAST_PART}")


class Address(ValidatedField):
    FIELD_KIND = "Address"
    MESSAGE_CONSTRAINTS = "Addresses can take any values, and it should not be blank"
    VALIDATION_REGEX = re.compile(r"[^\s].*", re.DOTALL)


class MedicalHistory(ValidatedField):
    """One free-form medical history entry, e.g. ``Diabetes``."""

    FIELD_KIND = "MedicalHistory"
    MESSAGE_CONSTRAINTS = "Medical history entries can take any values, and they should not be blank"
    VALIDATION_REGEX = re.compile(r"[^\s].*", re.DOTALL)


class Remark(ValidatedField):
    """Free-text remark about a patient. Always valid, may be empty."""

    FIELD_KIND = "Remark"
    MESSAGE_CONSTRAINTS = "Remarks can take any values"
    VALIDATION_REGEX = re.compile(r".*", re.DOTALL)


# ============================================================================
# Appointment
# ============================================================================

@dataclass(frozen=True)
class AppointmentGrammar:
    """Named rule set for parsing appointments from one origin.

    Attributes:
        name: Human-readable grammar name
        shape: Regex the raw string must fully match
        formats: strptime formats tried in order once the shape matches
        example: Example string accepted by this grammar
    """
    name: str
    shape: re.Pattern
    formats: tuple[str, ...]
    example: str

    def accepts_shape(self, raw: str) -> bool:
        return isinstance(raw, str) and self.shape.fullmatch(raw) is not None

    def to_datetime(self, raw: str) -> Optional[datetime]:
        """Convert a shape-valid string into a datetime, or None if the calendar values are impossible."""
        for fmt in self.formats:
            try:
                return datetime.strptime(raw, fmt)
            except ValueError:
                continue
        return None


# Day-first with slashes; two-digit years pivot the way strptime's %y does.
USER_INPUT_GRAMMAR = AppointmentGrammar(
    name="user input",
    shape=re.compile(r"\d{1,2}/\d{1,2}/(\d{4}|\d{2}) \d{2}:\d{2}"),
    formats=("%d/%m/%Y %H:%M", "%d/%m/%y %H:%M"),
    example="25/12/2024 14:30",
)

# Canonical form written to the data file.
STORAGE_GRAMMAR = AppointmentGrammar(
    name="storage",
    shape=re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}"),
    formats=("%Y-%m-%d %H:%M",),
    example="2024-12-25 14:30",
)

APPOINTMENT_GRAMMARS: dict[InputSource, AppointmentGrammar] = {
    InputSource.USER_INPUT: USER_INPUT_GRAMMAR,
    InputSource.STORAGE: STORAGE_GRAMMAR,
}

SAVE_FORMAT = "%Y-%m-%d %H:%M"
INPUT_FORMAT = "%d/%m/%Y %H:%M"


class Appointment(BaseModel):
    """An upcoming appointment, precise to the minute.

    Raw strings are parsed under the grammar selected by their InputSource:
    users type day-first dates (``DD/MM/YYYY HH:MM`` or ``DD/MM/YY HH:MM``),
    while the data file always holds the unambiguous ``YYYY-MM-DD HH:MM``.
    """

    model_config = ConfigDict(frozen=True)

    FIELD_KIND: ClassVar[str] = "Appointment"
    MESSAGE_CONSTRAINTS: ClassVar[str] = (
        "Appointments should be a valid date and time. "
        f"Enter them as DD/MM/YYYY HH:MM or DD/MM/YY HH:MM, e.g. {USER_INPUT_GRAMMAR.example}"
    )

    scheduled_at: datetime

    @field_validator("scheduled_at")
    @classmethod
    def truncate_to_minute(cls, v: datetime) -> datetime:
        return v.replace(second=0, microsecond=0)

    @classmethod
    def is_valid_format(cls, raw: str, origin: InputSource) -> bool:
        """Check whether raw has the shape of the grammar selected by origin.

        Calendar values are not checked here; parse() does that.
        """
        return APPOINTMENT_GRAMMARS[origin].accepts_shape(raw)

    @classmethod
    def parse(cls, raw: str, origin: InputSource) -> 'Appointment':
        """Parse raw under the grammar selected by origin.

        Parameters:
            raw: Raw appointment string
            origin: Where raw came from (USER_INPUT or STORAGE)

        Returns:
            Appointment: The parsed appointment

        Raises:
            BadAppointmentFormatError: If raw has the wrong shape for origin or
                names an impossible date or time (e.g. month 13, hour 25)
        """
        grammar = APPOINTMENT_GRAMMARS[origin]
        if not grammar.accepts_shape(raw):
            raise BadAppointmentFormatError(origin, cls.MESSAGE_CONSTRAINTS)
        scheduled_at = grammar.to_datetime(raw)
        if scheduled_at is None:
            raise BadAppointmentFormatError(origin, cls.MESSAGE_CONSTRAINTS)
        return cls(scheduled_at=scheduled_at)

    @classmethod
    def create(cls, raw: str, origin: InputSource) -> 'Result[Appointment]':
        """Result-returning variant of parse()."""
        try:
            return Result.success_result(cls.parse(raw, origin))
        except BadAppointmentFormatError as e:
            return Result.failure_result(
                e,
                error_details={"field": e.field_kind, "origin": origin.value},
            )

    def to_save_string(self) -> str:
        """Render in the STORAGE grammar."""
        return self.scheduled_at.strftime(SAVE_FORMAT)

    def to_input_string(self) -> str:
        """Render in the four-digit-year USER_INPUT grammar."""
        return self.scheduled_at.strftime(INPUT_FORMAT)

    def __str__(self) -> str:
        return self.to_save_string()
