"""Build image display sets from DICOM files on disk."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

import pydicom
from pydicom.dataset import Dataset
from pydicom.errors import InvalidDicomError
from pydicom.uid import generate_uid

from structured_report.codes import SR_SOP_CLASS_UIDS

from .models import ImageInstance, ImageSet


logger = logging.getLogger(__name__)

_HEADER_TAGS = [
    "StudyInstanceUID",
    "SeriesInstanceUID",
    "SOPInstanceUID",
    "SOPClassUID",
    "InstanceNumber",
    "SeriesDescription",
    "SeriesNumber",
    "Modality",
]


@dataclass
class _SeriesBuilder:
    study_instance_uid: Optional[str]
    series_description: Optional[str]
    series_number: Optional[int]
    modality: Optional[str]
    entries: List[Tuple[ImageInstance, Path]] = field(default_factory=list)


@dataclass
class LoadResult:
    image_sets: List[ImageSet] = field(default_factory=list)
    sr_paths: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)


def image_id_for(path: Path, scheme: str = "dicomfile") -> str:
    return f"{scheme}:{path.resolve()}"


def iter_dicom_files(root: Path) -> Iterator[Path]:
    if root.is_file():
        yield root
        return
    for path in sorted(root.rglob("*")):
        if path.is_file() and not path.name.startswith("."):
            yield path


def _read_header(path: Path) -> Optional[Dataset]:
    try:
        return pydicom.dcmread(path, stop_before_pixels=True, specific_tags=_HEADER_TAGS)
    except (InvalidDicomError, OSError) as exc:
        logger.debug("Skipping %s: %s", path, exc)
        return None


def _optional_int(value) -> Optional[int]:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _sop_class_uid(dataset: Dataset) -> Optional[str]:
    sop_class_uid = getattr(dataset, "SOPClassUID", None) or getattr(
        getattr(dataset, "file_meta", None),
        "MediaStorageSOPClassUID",
        None,
    )
    return str(sop_class_uid) if sop_class_uid else None


def load_image_sets(
    roots: Iterable[Path],
    scheme: str = "dicomfile",
    uid_factory: Callable[[], str] = generate_uid,
    sr_sop_class_uids: Iterable[str] = SR_SOP_CLASS_UIDS,
) -> LoadResult:
    """Group DICOM files into one :class:`ImageSet` per SeriesInstanceUID.

    Series keep first-seen order; images inside a series are ordered by
    InstanceNumber, then path. Instances whose SOP class is in
    ``sr_sop_class_uids`` are reported separately as SR paths.
    """

    result = LoadResult()
    sr_classes = frozenset(sr_sop_class_uids)
    series: dict[str, _SeriesBuilder] = {}

    for root in roots:
        for path in iter_dicom_files(Path(root)):
            dataset = _read_header(path)
            if dataset is None:
                result.skipped.append(path)
                continue

            series_uid = getattr(dataset, "SeriesInstanceUID", None)
            sop_uid = getattr(dataset, "SOPInstanceUID", None)
            sop_class_uid = _sop_class_uid(dataset)
            if not (series_uid and sop_uid and sop_class_uid):
                result.skipped.append(path)
                continue
            if sop_class_uid in sr_classes:
                result.sr_paths.append(path)
                continue

            builder = series.get(str(series_uid))
            if builder is None:
                builder = _SeriesBuilder(
                    study_instance_uid=str(getattr(dataset, "StudyInstanceUID", "")) or None,
                    series_description=str(getattr(dataset, "SeriesDescription", "")) or None,
                    series_number=_optional_int(getattr(dataset, "SeriesNumber", None)),
                    modality=str(getattr(dataset, "Modality", "")) or None,
                )
                series[str(series_uid)] = builder
            instance = ImageInstance(
                sop_instance_uid=str(sop_uid),
                sop_class_uid=sop_class_uid,
                instance_number=_optional_int(getattr(dataset, "InstanceNumber", None)),
                path=path,
            )
            builder.entries.append((instance, path))

    for series_uid, builder in series.items():
        ordered = sorted(
            builder.entries,
            key=lambda entry: (
                entry[0].instance_number is None,
                entry[0].instance_number or 0,
                str(entry[1]),
            ),
        )
        result.image_sets.append(
            ImageSet(
                display_set_uid=uid_factory(),
                study_instance_uid=builder.study_instance_uid,
                series_instance_uid=series_uid,
                series_description=builder.series_description,
                series_number=builder.series_number,
                modality=builder.modality,
                images=[instance for instance, _ in ordered],
                image_ids=[image_id_for(path, scheme) for _, path in ordered],
            )
        )

    logger.info(
        "Loaded %d image set(s); %d SR file(s), %d skipped",
        len(result.image_sets),
        len(result.sr_paths),
        len(result.skipped),
    )
    return result
