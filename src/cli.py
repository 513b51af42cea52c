"""Command Line Interface for Clinic Records.

This module provides a Typer CLI for listing, searching, adding and deleting
patients in the JSON data file.

Security Impact:
    - All input is validated by the domain fields before it is stored
    - A data file that fails validation is reported and left untouched
"""

from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.markup import escape

from src.domain.enums import SearchMode
from src.domain.patient_collection import FilteredView
from src.domain.search import build_predicate
from src.infrastructure.config_manager import StorageConfig
from src.infrastructure.logging_config import configure_logging
from src.infrastructure.settings import APP_VERSION, settings
from src.main import (
    MESSAGE_PATIENTS_LISTED_OVERVIEW,
    PatientBook,
    create_storage_adapter,
    parse_patient_input,
)

# Initialize Typer app and Rich console
app = typer.Typer(
    name="clinic-records",
    help="Clinic Records: single-user patient record manager",
    add_completion=False
)
console = Console()


def _fail(message: str) -> None:
    console.print(f"[red]✗[/red] {escape(message)}")
    raise typer.Exit(code=1)


def _storage_config(ctx: typer.Context) -> StorageConfig:
    data_file = (ctx.obj or {}).get("data_file")
    if data_file is None:
        try:
            return settings.storage_config
        except PydanticValidationError as e:
            _fail(f"Invalid storage configuration: {e.errors()[0]['msg']}")
        except ValueError as e:
            _fail(f"Invalid storage configuration: {e}")
    try:
        return StorageConfig(data_file=data_file)
    except PydanticValidationError as e:
        _fail(f"Invalid data file: {e.errors()[0]['msg']}")


def _open_book(ctx: typer.Context) -> PatientBook:
    result = PatientBook.open(create_storage_adapter(_storage_config(ctx)))
    if result.is_failure():
        _fail(f"Cannot load patient data ({result.error_type}): {result.error}")
    return result.value


def _print_patients(view: FilteredView) -> None:
    for index, record in enumerate(view, start=1):
        console.print(f"{index}. {escape(str(record.name))} ({record.patient_id})")


@app.command("list")
def list_patients(ctx: typer.Context) -> None:
    """List every patient in insertion order."""
    book = _open_book(ctx)
    _print_patients(book.filtered_patients)
    console.print(MESSAGE_PATIENTS_LISTED_OVERVIEW.format(len(book.filtered_patients)))


@app.command()
def find(
    ctx: typer.Context,
    keywords: List[str] = typer.Argument(..., help="Keywords to match (case-insensitive)"),
    by_id: bool = typer.Option(False, "--id", help="Match keywords against patient IDs instead of names"),
) -> None:
    """Find patients whose names contain any of the keywords.

    Examples:
        clinic-records find alice bob
        clinic-records find --id S872D
    """
    book = _open_book(ctx)
    mode = SearchMode.BY_ID if by_id else SearchMode.BY_NAME
    result = book.find(build_predicate(keywords, mode))
    _print_patients(book.filtered_patients)
    console.print(MESSAGE_PATIENTS_LISTED_OVERVIEW.format(result.value))


@app.command()
def add(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", "-n", help="Full name"),
    patient_id: str = typer.Option(..., "--id", "-i", help="Patient ID, e.g. S872D"),
    phone: str = typer.Option(..., "--phone", "-p", help="Phone number"),
    email: str = typer.Option(..., "--email", "-e", help="Email address"),
    address: str = typer.Option(..., "--address", "-a", help="Home address"),
    appointment: Optional[str] = typer.Option(None, "--appointment", help="Appointment as DD/MM/YYYY HH:MM"),
    history: Optional[List[str]] = typer.Option(None, "--history", help="Medical history entry (repeatable)"),
    remark: str = typer.Option("", "--remark", "-r", help="Free-text remark"),
) -> None:
    """Add a new patient."""
    parsed = parse_patient_input(
        name=name,
        patient_id=patient_id,
        phone=phone,
        email=email,
        address=address,
        appointment=appointment,
        medical_histories=history or [],
        remark=remark,
    )
    if parsed.is_failure():
        _fail(parsed.error)

    book = _open_book(ctx)
    result = book.add_patient(parsed.value)
    if result.is_failure():
        _fail(result.error)
    console.print(f"[green]✓[/green] New patient added: {escape(str(result.value.name))} ({result.value.patient_id})")


@app.command()
def delete(
    ctx: typer.Context,
    patient_id: str = typer.Argument(..., help="ID of the patient to delete"),
) -> None:
    """Delete the patient with the given ID."""
    book = _open_book(ctx)
    result = book.delete_patient(patient_id)
    if result.is_failure():
        _fail(result.error)
    console.print(f"[green]✓[/green] Deleted patient: {escape(str(result.value.name))} ({result.value.patient_id})")


@app.command()
def info(ctx: typer.Context) -> None:
    """Display application and storage information."""
    storage_config = _storage_config(ctx)
    console.print(f"Application: {settings.app_name}")
    console.print(f"Data file: {escape(str(storage_config.data_file))}")
    source_info = create_storage_adapter(storage_config).get_source_info()
    if source_info is None:
        console.print("Data file status: not created yet")
    else:
        console.print(f"Data file size: {source_info['size']} bytes")


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"Clinic-Records v{APP_VERSION}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    data_file: Optional[Path] = typer.Option(None, "--data-file", "-f", help="Path to the JSON data file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    version: bool = typer.Option(
        False, "--version", help="Show version information", callback=_version_callback, is_eager=True
    ),
) -> None:
    """Clinic Records: single-user patient record manager."""
    configure_logging(
        "DEBUG" if verbose else settings.log_level,
        use_json=settings.log_json,
        app_name=settings.app_name,
    )
    ctx.obj = {"data_file": data_file}


if __name__ == "__main__":
    app()
