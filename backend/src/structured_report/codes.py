"""Coded concepts and constants for TID 1500 measurement reports."""

from __future__ import annotations

from enum import Enum
from typing import Final


SOP_CLASS_HANDLER_NAME: Final[str] = "dicom-sr"

BASIC_TEXT_SR: Final[str] = "1.2.840.10008.5.1.4.1.1.88.11"
ENHANCED_SR: Final[str] = "1.2.840.10008.5.1.4.1.1.88.22"
COMPREHENSIVE_SR: Final[str] = "1.2.840.10008.5.1.4.1.1.88.33"

SR_SOP_CLASS_UIDS: Final[tuple[str, ...]] = (
    BASIC_TEXT_SR,
    ENHANCED_SR,
    COMPREHENSIVE_SR,
)


class ConceptCode(str, Enum):
    """Concept name code values (DCM scheme) used to navigate the report."""

    IMAGING_MEASUREMENT_REPORT = "126000"
    IMAGE_LIBRARY = "111028"
    IMAGING_MEASUREMENTS = "126010"
    MEASUREMENT_GROUP = "125007"
    IMAGE_LIBRARY_GROUP = "126200"
    TRACKING_UNIQUE_IDENTIFIER = "112040"


class ValueType(str, Enum):
    TEXT = "TEXT"
    NUM = "NUM"
    CODE = "CODE"
    DATETIME = "DATETIME"
    DATE = "DATE"
    TIME = "TIME"
    UIDREF = "UIDREF"
    PNAME = "PNAME"
    COMPOSITE = "COMPOSITE"
    IMAGE = "IMAGE"
    WAVEFORM = "WAVEFORM"
    SCOORD = "SCOORD"
    SCOORD3D = "SCOORD3D"
    TCOORD = "TCOORD"
    CONTAINER = "CONTAINER"


SPATIAL_VALUE_TYPES: Final[frozenset[str]] = frozenset(
    {ValueType.SCOORD.value, ValueType.SCOORD3D.value}
)


class RelationshipType(str, Enum):
    CONTAINS = "CONTAINS"
    HAS_PROPERTIES = "HAS PROPERTIES"
    HAS_OBS_CONTEXT = "HAS OBS CONTEXT"
    HAS_ACQ_CONTEXT = "HAS ACQ CONTEXT"
    HAS_CONCEPT_MOD = "HAS CONCEPT MOD"
    INFERRED_FROM = "INFERRED FROM"
    SELECTED_FROM = "SELECTED FROM"
