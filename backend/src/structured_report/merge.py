"""Grouping of measurement groups by tracking identifier."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .codes import ConceptCode
from .content import ContentNode, find_by_code, find_optional_by_code, normalize
from .diagnostics import Diagnostics


logger = logging.getLogger(__name__)


def collect_measurement_groups(root_nodes: Sequence[ContentNode]) -> list[ContentNode]:
    """Measurement Group containers under the Imaging Measurements section."""

    imaging_measurements = find_by_code(
        root_nodes,
        ConceptCode.IMAGING_MEASUREMENTS,
        "Imaging Measurements",
    )
    return [
        node
        for node in normalize(imaging_measurements.content)
        if node.code_value == ConceptCode.MEASUREMENT_GROUP.value
    ]


def tracking_identifier_node(nodes: Sequence[ContentNode]) -> Optional[ContentNode]:
    node = find_optional_by_code(nodes, ConceptCode.TRACKING_UNIQUE_IDENTIFIER)
    if node is None or not node.uid:
        return None
    return node


def merge_measurement_groups(
    groups: Sequence[ContentNode],
    diagnostics: Diagnostics,
) -> dict[str, list[ContentNode]]:
    """Merge group content sharing a Tracking Unique Identifier.

    The first group seen for an identifier contributes all of its children,
    including the identifier item. Later groups with the same identifier
    contribute everything except their own identifier item. Keys keep
    first-seen order; values keep group arrival order, then child order.
    """

    merged: dict[str, list[ContentNode]] = {}

    for position, group in enumerate(groups):
        children = normalize(group.content)
        identifier_node = tracking_identifier_node(children)

        if identifier_node is None:
            diagnostics.warn(
                "No Tracking Unique Identifier, skipping ambiguous measurement group",
                source=logger,
                group_index=position,
            )
            continue

        tracking_identifier = identifier_node.uid
        if tracking_identifier not in merged:
            merged[tracking_identifier] = list(children)
            continue

        merged[tracking_identifier].extend(
            child
            for child in children
            if child.code_value != ConceptCode.TRACKING_UNIQUE_IDENTIFIER.value
        )
        logger.debug("Merged additional group into tracking identifier %s", tracking_identifier)

    return merged

