"""Construction of Measurement records from merged group content.

Two document styles are handled:

* geometric (TID 1410 style): a SCOORD/SCOORD3D item sits at the top level of
  the group and every NUM item describes that single shape;
* itemized: each NUM item carries its own SCOORD child, related to it by
  ``INFERRED FROM``.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from .codes import SPATIAL_VALUE_TYPES, ConceptCode, ValueType
from .content import ContentNode, MeasuredValue, find_optional_by_code
from .coordinates import extract_coordinate
from .diagnostics import Diagnostics
from .errors import MissingTrackingIdentifierError
from .models import Label, Measurement


logger = logging.getLogger(__name__)


def format_label(node: ContentNode, measured_value: MeasuredValue) -> Label:
    """E.g. ``Label("Long Axis", "31.0 mm")``."""

    return Label(
        label=node.code_meaning,
        value=f"{measured_value.numeric_value} {measured_value.unit_code_value}",
    )


def is_geometric(merged: Sequence[ContentNode]) -> bool:
    return any(node.value_type in SPATIAL_VALUE_TYPES for node in merged)


def _tracking_identifier(merged: Sequence[ContentNode]) -> str:
    node = find_optional_by_code(merged, ConceptCode.TRACKING_UNIQUE_IDENTIFIER)
    if node is None or not node.uid:
        raise MissingTrackingIdentifierError()
    return node.uid


def _num_items(merged: Sequence[ContentNode]) -> list[ContentNode]:
    return [node for node in merged if node.value_type == ValueType.NUM.value]


def build_geometric_measurement(
    tracking_identifier: str,
    merged: Sequence[ContentNode],
    diagnostics: Diagnostics,
) -> Measurement:
    graphic_item = next(node for node in merged if node.value_type in SPATIAL_VALUE_TYPES)
    measurement = Measurement(tracking_identifier=tracking_identifier)

    coordinate = extract_coordinate(graphic_item, diagnostics)
    if coordinate is not None:
        measurement.coords.append(coordinate)

    for item in _num_items(merged):
        if item.measured_value is not None:
            measurement.labels.append(format_label(item, item.measured_value))

    return measurement


def build_itemized_measurement(
    tracking_identifier: str,
    merged: Sequence[ContentNode],
    diagnostics: Diagnostics,
    strict_pairing: bool = False,
) -> Measurement:
    """Coordinates and labels are appended per NUM item.

    Without ``strict_pairing`` the two lists are filled independently, so a NUM
    item lacking geometry still contributes its label and indices drift.
    With ``strict_pairing`` a label is kept only when its item produced a
    coordinate, giving ``len(coords) == len(labels)``.
    """

    measurement = Measurement(tracking_identifier=tracking_identifier)

    for item in _num_items(merged):
        children = item.children
        graphic = children[0] if children else None
        coordinate = None

        if graphic is None or graphic.value_type != ValueType.SCOORD.value:
            diagnostics.warn(
                f"Graphic {graphic.value_type if graphic else None} not currently supported, "
                "skipping annotation",
                source=logger,
                tracking_identifier=tracking_identifier,
                concept=item.code_meaning,
            )
        else:
            coordinate = extract_coordinate(graphic, diagnostics)
            if coordinate is not None:
                measurement.coords.append(coordinate)

        if item.measured_value is None:
            continue
        if strict_pairing and coordinate is None:
            continue
        measurement.labels.append(format_label(item, item.measured_value))

    return measurement


def build_measurement(
    merged: Sequence[ContentNode],
    diagnostics: Diagnostics,
    tracking_identifier: Optional[str] = None,
    strict_pairing: bool = False,
) -> Measurement:
    identifier = tracking_identifier or _tracking_identifier(merged)
    if is_geometric(merged):
        return build_geometric_measurement(identifier, merged, diagnostics)
    return build_itemized_measurement(identifier, merged, diagnostics, strict_pairing=strict_pairing)


def build_measurements(
    merged_by_identifier: Mapping[str, Sequence[ContentNode]],
    diagnostics: Diagnostics,
    strict_pairing: bool = False,
) -> list[Measurement]:
    return [
        build_measurement(merged, diagnostics, tracking_identifier=identifier, strict_pairing=strict_pairing)
        for identifier, merged in merged_by_identifier.items()
    ]
