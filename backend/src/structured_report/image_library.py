"""Image library (TID 1600) extraction."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .codes import ConceptCode
from .content import ContentNode, ReferencedImage, find_by_code, normalize
from .diagnostics import Diagnostics


logger = logging.getLogger(__name__)


def build_referenced_images(
    root_nodes: Sequence[ContentNode],
    diagnostics: Optional[Diagnostics] = None,
) -> list[ReferencedImage]:
    """List every image the report declares in its image library.

    Document order is preserved and duplicates are kept. A missing Image
    Library or Image Library Group raises ``ContentNotFoundError``.
    """

    library = find_by_code(root_nodes, ConceptCode.IMAGE_LIBRARY, "Image Library")
    group = find_by_code(
        normalize(library.content),
        ConceptCode.IMAGE_LIBRARY_GROUP,
        "Image Library Group",
    )

    referenced: list[ReferencedImage] = []
    for position, item in enumerate(normalize(group.content)):
        if item.referenced_sop is None:
            if diagnostics is not None:
                diagnostics.info(
                    "Image library entry has no referenced SOP; skipping",
                    source=logger,
                    position=position,
                    value_type=item.value_type,
                )
            continue
        referenced.append(item.referenced_sop)
    return referenced
