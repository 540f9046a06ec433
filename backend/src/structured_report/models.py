"""Measurement and report records produced from a TID 1500 document."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .content import ReferencedImage, ReferencedSOP
from .diagnostics import Diagnostic


class CoordinateKind(str, Enum):
    SCOORD = "SCOORD"
    SCOORD3D = "SCOORD3D"


@dataclass(frozen=True)
class Coordinate:
    """Spatial annotation extracted from an SCOORD/SCOORD3D item.

    2D coordinates reference an SOP instance; 3D coordinates reference a frame
    of reference and therefore never bind to a single image.
    """

    kind: CoordinateKind
    graphic_type: Optional[str]
    graphic_data: tuple[float, ...]
    referenced_sop: Optional[ReferencedSOP] = None
    frame_of_reference_uid: Optional[str] = None

    @property
    def sop_class_uid(self) -> Optional[str]:
        return self.referenced_sop.sop_class_uid if self.referenced_sop else None

    @property
    def sop_instance_uid(self) -> Optional[str]:
        return self.referenced_sop.sop_instance_uid if self.referenced_sop else None

    @property
    def is_bindable(self) -> bool:
        return bool(self.sop_instance_uid)


@dataclass(frozen=True)
class Label:
    label: Optional[str]
    value: str


@dataclass(frozen=True)
class CoordinateBinding:
    image_id: str
    display_set_uid: str


@dataclass
class Measurement:
    """One tracked finding.

    Geometric measurements hold exactly one coordinate shared by all labels.
    Itemized measurements append coordinates and labels per NUM item; the two
    lists line up index for index only when every item produced both (or when
    built with ``strict_pairing``).

    ``loaded`` turns True once every coordinate with an SOP instance reference
    has a binding. Measurements without such coordinates stay unloaded.
    """

    tracking_identifier: str
    labels: list[Label] = field(default_factory=list)
    coords: list[Coordinate] = field(default_factory=list)
    loaded: bool = False
    bindings: dict[int, CoordinateBinding] = field(default_factory=dict)

    def bindable_indices(self) -> list[int]:
        return [index for index, coord in enumerate(self.coords) if coord.is_bindable]

    def unbound_indices(self) -> list[int]:
        return [index for index in self.bindable_indices() if index not in self.bindings]

    def references(self, sop_instance_uid: str) -> bool:
        return any(coord.sop_instance_uid == sop_instance_uid for coord in self.coords)

    def bind(self, index: int, binding: CoordinateBinding) -> None:
        self.bindings[index] = binding
        self.refresh_loaded()

    def refresh_loaded(self) -> bool:
        bindable = self.bindable_indices()
        self.loaded = bool(bindable) and all(index in self.bindings for index in bindable)
        return self.loaded


@dataclass
class ReportRecord:
    """Aggregate built once per SR document."""

    display_set_uid: str
    study_instance_uid: Optional[str]
    series_instance_uid: Optional[str]
    sop_instance_uid: Optional[str]
    series_description: Optional[str] = None
    series_number: Optional[int] = None
    series_date: Optional[str] = None
    modality: str = "SR"
    sop_class_uids: tuple[str, ...] = ()
    referenced_images: list[ReferencedImage] = field(default_factory=list)
    measurements: list[Measurement] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def unloaded_measurements(self) -> list[Measurement]:
        return [measurement for measurement in self.measurements if not measurement.loaded]

    def pending_measurements(self) -> list[Measurement]:
        """Unloaded measurements that could still be bound to an image."""

        return [
            measurement
            for measurement in self.unloaded_measurements()
            if measurement.unbound_indices()
        ]
