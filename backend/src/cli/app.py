"""Typer application entrypoint."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pydicom
import typer
from pydicom.errors import InvalidDicomError
from rich import print as rprint
from rich.table import Table

from display_sets.loader import load_image_sets
from display_sets.registry import DisplaySetRegistry
from display_sets.sr_handler import SRSopClassHandler
from logging_config import configure_logging
from structured_report.config import SRHandlerConfig, load_config
from structured_report.errors import ReportParseError
from structured_report.models import Coordinate, Measurement, ReportRecord
from structured_report.report import report_record_from_dataset


configure_logging()


app = typer.Typer(help="Imaging Measurement Report (TID 1500) tools")


def _resolve_config(config_path: Optional[Path], strict_pairing: Optional[bool] = None) -> SRHandlerConfig:
    config = load_config(config_path) if config_path else SRHandlerConfig()
    if strict_pairing is not None:
        config = config.model_copy(update={"strict_pairing": strict_pairing})
    return config


def _read_sr(path: Path) -> pydicom.Dataset:
    try:
        return pydicom.dcmread(path)
    except (InvalidDicomError, OSError) as exc:
        typer.echo(f"Cannot read {path}: {exc}", err=True)
        raise typer.Exit(code=1)


def _describe_coordinate(coord: Coordinate) -> str:
    target = coord.sop_instance_uid or coord.frame_of_reference_uid or "-"
    return f"{coord.kind.value} {coord.graphic_type or '?'} ({len(coord.graphic_data)} values) -> {target}"


def _print_record(record: ReportRecord) -> None:
    table = Table(title=f"Measurements ({record.series_description or record.sop_instance_uid or 'SR'})")
    table.add_column("Tracking UID")
    table.add_column("Labels")
    table.add_column("Coordinates")
    table.add_column("Loaded")
    for measurement in record.measurements:
        table.add_row(
            measurement.tracking_identifier,
            "\n".join(f"{label.label}: {label.value}" for label in measurement.labels) or "-",
            "\n".join(_describe_coordinate(coord) for coord in measurement.coords) or "-",
            "yes" if measurement.loaded else "no",
        )
    rprint(table)

    images = Table(title="Referenced images")
    images.add_column("SOP Class UID")
    images.add_column("SOP Instance UID")
    for image in record.referenced_images:
        images.add_row(image.sop_class_uid, image.sop_instance_uid)
    rprint(images)

    if record.diagnostics:
        diagnostics = Table(title="Diagnostics")
        diagnostics.add_column("Severity")
        diagnostics.add_column("Message")
        for entry in record.diagnostics:
            diagnostics.add_row(entry.severity.value, entry.message)
        rprint(diagnostics)


@app.command("parse")
def parse_command(
    sr_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="SR instance to parse"),
    config_path: Optional[Path] = typer.Option(None, "--config", exists=True, help="JSON or YAML handler config"),
    strict_pairing: Optional[bool] = typer.Option(
        None,
        "--strict-pairing/--independent-pairing",
        help="Keep itemized labels only when their NUM item produced a coordinate",
    ),
) -> None:
    """Parse an Imaging Measurement Report and list its measurements."""

    config = _resolve_config(config_path, strict_pairing)
    dataset = _read_sr(sr_file)
    try:
        record = report_record_from_dataset(dataset, config)
    except ReportParseError as exc:
        typer.echo(f"Parse failed: {exc}", err=True)
        raise typer.Exit(code=1)
    if record is None:
        typer.echo("Not an Imaging Measurement Report (TID1500); nothing to do.")
        return
    _print_record(record)


@app.command("reconcile")
def reconcile_command(
    sr_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="SR instance to reconcile"),
    image_roots: List[Path] = typer.Argument(..., exists=True, help="Files or folders holding referenced images"),
    config_path: Optional[Path] = typer.Option(None, "--config", exists=True, help="JSON or YAML handler config"),
) -> None:
    """Bind SR measurements to images found under IMAGE_ROOTS."""

    config = _resolve_config(config_path)
    bindings: list[tuple[Measurement, Coordinate, str, str]] = []

    def _add_measurement(measurement: Measurement, coordinate: Coordinate, image_id: str, display_set_uid: str) -> None:
        bindings.append((measurement, coordinate, image_id, display_set_uid))

    registry = DisplaySetRegistry()
    handler = SRSopClassHandler(registry, _add_measurement, config=config)

    try:
        display_sets = handler.get_display_sets_from_series([_read_sr(sr_file)])
    except ReportParseError as exc:
        typer.echo(f"Parse failed: {exc}", err=True)
        raise typer.Exit(code=1)
    if not display_sets:
        typer.echo("Not an Imaging Measurement Report (TID1500); nothing to do.")
        return
    registry.add_all(display_sets)

    loaded = load_image_sets(
        image_roots,
        scheme=config.image_id_scheme,
        sr_sop_class_uids=config.supported_sop_class_uids,
    )
    registry.add_all(loaded.image_sets)

    table = Table(title="Bindings")
    table.add_column("Tracking UID")
    table.add_column("SOP Instance UID")
    table.add_column("Image ID")
    table.add_column("Display set")
    for measurement, coordinate, image_id, display_set_uid in bindings:
        table.add_row(measurement.tracking_identifier, coordinate.sop_instance_uid or "-", image_id, display_set_uid)
    rprint(table)

    record = display_sets[0].record
    unresolved = record.unloaded_measurements()
    typer.echo(
        f"{len(record.measurements) - len(unresolved)}/{len(record.measurements)} measurement(s) loaded "
        f"from {len(loaded.image_sets)} image set(s)"
    )
    for display_set in display_sets:
        display_set.dispose()


if __name__ == "__main__":
    app()
