"""Display set models shared by the registry, loader and reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, TYPE_CHECKING

from structured_report.models import Measurement, ReportRecord

if TYPE_CHECKING:  # pragma: no cover
    from .registry import Subscription


@dataclass(kw_only=True)
class DisplaySet:
    display_set_uid: str
    study_instance_uid: Optional[str] = None
    series_instance_uid: Optional[str] = None
    series_description: Optional[str] = None
    series_number: Optional[int] = None
    modality: Optional[str] = None


@dataclass(frozen=True)
class ImageInstance:
    sop_instance_uid: str
    sop_class_uid: Optional[str] = None
    instance_number: Optional[int] = None
    path: Optional[Path] = None


@dataclass(kw_only=True)
class ImageSet(DisplaySet):
    """Ordered stack of images with an index-aligned list of image ids."""

    images: list[ImageInstance] = field(default_factory=list)
    image_ids: list[str] = field(default_factory=list)
    sop_class_uids: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.sop_class_uids:
            self.sop_class_uids = frozenset(
                image.sop_class_uid for image in self.images if image.sop_class_uid
            )

    def image_id_at(self, index: int) -> Optional[str]:
        if 0 <= index < len(self.image_ids):
            return self.image_ids[index]
        return None


@dataclass(kw_only=True)
class SRDisplaySet(DisplaySet):
    """Display set wrapping a parsed measurement report."""

    record: ReportRecord
    plugin: str = "dicom-sr"
    sop_class_handler_id: Optional[str] = None
    subscription: Optional["Subscription"] = field(default=None, repr=False)

    @property
    def measurements(self) -> list[Measurement]:
        return self.record.measurements

    def dispose(self) -> None:
        if self.subscription is not None:
            self.subscription.dispose()
