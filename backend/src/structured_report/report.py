"""Turn a TID 1500 Imaging Measurement Report into a :class:`ReportRecord`."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from pydicom.dataset import Dataset
from pydicom.uid import generate_uid

from .codes import ConceptCode
from .config import SRHandlerConfig
from .content import ContentNode, normalize, report_root_from_dataset
from .diagnostics import Diagnostics
from .errors import ReportParseError
from .image_library import build_referenced_images
from .measurements import build_measurements
from .merge import collect_measurement_groups, merge_measurement_groups
from .models import Measurement, ReportRecord


logger = logging.getLogger(__name__)


def is_measurement_report(root: ContentNode) -> bool:
    return root.code_value == ConceptCode.IMAGING_MEASUREMENT_REPORT.value


def extract_measurements(
    root_nodes: list[ContentNode],
    diagnostics: Diagnostics,
    strict_pairing: bool = False,
) -> list[Measurement]:
    groups = collect_measurement_groups(root_nodes)
    merged = merge_measurement_groups(groups, diagnostics)
    return build_measurements(merged, diagnostics, strict_pairing=strict_pairing)


def build_report_record(
    root: ContentNode,
    *,
    display_set_uid: Optional[str] = None,
    study_instance_uid: Optional[str] = None,
    series_instance_uid: Optional[str] = None,
    sop_instance_uid: Optional[str] = None,
    series_description: Optional[str] = None,
    series_number: Optional[int] = None,
    series_date: Optional[str] = None,
    config: Optional[SRHandlerConfig] = None,
) -> Optional[ReportRecord]:
    """Parse a report content tree.

    Returns ``None`` for well-formed reports of an unsupported template.
    Raises :class:`ReportParseError` when a required section is missing.
    """

    config = config or SRHandlerConfig()

    if root.code_value is None:
        raise ReportParseError("SR document root has no concept name code")
    if not is_measurement_report(root):
        logger.warning(
            "Only Imaging Measurement Report SRs (TID1500) are supported, got concept %s (%s)",
            root.code_value,
            root.code_meaning,
        )
        return None
    if root.content is None:
        raise ReportParseError("SR document has no ContentSequence")

    diagnostics = Diagnostics()
    root_nodes = normalize(root.content)

    referenced_images = build_referenced_images(root_nodes, diagnostics)
    measurements = extract_measurements(root_nodes, diagnostics, strict_pairing=config.strict_pairing)

    record = ReportRecord(
        display_set_uid=display_set_uid or generate_uid(),
        study_instance_uid=study_instance_uid,
        series_instance_uid=series_instance_uid,
        sop_instance_uid=sop_instance_uid,
        series_description=series_description,
        series_number=series_number,
        series_date=series_date,
        sop_class_uids=tuple(config.supported_sop_class_uids),
        referenced_images=referenced_images,
        measurements=measurements,
        diagnostics=diagnostics.entries,
    )
    logger.info(
        "Parsed SR %s: %d measurements, %d referenced images, %d diagnostics",
        sop_instance_uid or record.display_set_uid,
        len(measurements),
        len(referenced_images),
        len(record.diagnostics),
    )
    return record


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def report_record_from_dataset(
    dataset: Dataset,
    config: Optional[SRHandlerConfig] = None,
    uid_factory: Callable[[], str] = generate_uid,
) -> Optional[ReportRecord]:
    """Parse an SR instance read with pydicom."""

    root = report_root_from_dataset(dataset)
    return build_report_record(
        root,
        display_set_uid=uid_factory(),
        study_instance_uid=_optional_str(dataset.get("StudyInstanceUID")),
        series_instance_uid=_optional_str(dataset.get("SeriesInstanceUID")),
        sop_instance_uid=_optional_str(dataset.get("SOPInstanceUID")),
        series_description=_optional_str(dataset.get("SeriesDescription")),
        series_number=_optional_int(dataset.get("SeriesNumber")),
        series_date=_optional_str(dataset.get("SeriesDate")),
        config=config,
    )
