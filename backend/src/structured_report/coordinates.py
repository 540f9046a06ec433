"""Extraction of spatial coordinates from SCOORD/SCOORD3D content items."""

from __future__ import annotations

import logging
from typing import Optional

from .codes import RelationshipType, ValueType
from .content import ContentNode
from .diagnostics import Diagnostics
from .models import Coordinate, CoordinateKind


logger = logging.getLogger(__name__)


def extract_coordinate(node: ContentNode, diagnostics: Diagnostics) -> Optional[Coordinate]:
    """Build a :class:`Coordinate` from a spatial node.

    Only geometry related to its measurement by ``INFERRED FROM`` is supported.
    Anything else is recorded as a diagnostic and yields ``None``.
    """

    if node.relationship_type != RelationshipType.INFERRED_FROM.value:
        diagnostics.warn(
            f"Cannot handle {node.value_type} with relationship type {node.relationship_type!r}; "
            f'only "{RelationshipType.INFERRED_FROM.value}" geometry is supported',
            source=logger,
            value_type=node.value_type,
            relationship_type=node.relationship_type,
        )
        return None

    # INFERRED FROM geometry carries a single child holding the reference.
    children = node.children
    reference_node = children[0] if children else None

    if node.value_type == ValueType.SCOORD.value:
        referenced_sop = node.referenced_sop
        if reference_node is not None and reference_node.referenced_sop is not None:
            referenced_sop = reference_node.referenced_sop
        if referenced_sop is None:
            diagnostics.info(
                "SCOORD has no referenced SOP instance; coordinate cannot be bound to an image",
                source=logger,
                graphic_type=node.graphic_type,
            )
        return Coordinate(
            kind=CoordinateKind.SCOORD,
            graphic_type=node.graphic_type,
            graphic_data=tuple(node.graphic_data),
            referenced_sop=referenced_sop,
        )

    if node.value_type == ValueType.SCOORD3D.value:
        frame_uid = node.referenced_frame_of_reference_uid
        if frame_uid is None and reference_node is not None:
            frame_uid = reference_node.referenced_frame_of_reference_uid
        return Coordinate(
            kind=CoordinateKind.SCOORD3D,
            graphic_type=node.graphic_type,
            graphic_data=tuple(node.graphic_data),
            frame_of_reference_uid=frame_uid,
        )

    diagnostics.warn(
        f"Content item of type {node.value_type} is not spatial; no coordinate extracted",
        source=logger,
        value_type=node.value_type,
    )
    return None
