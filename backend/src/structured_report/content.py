"""Content tree model and lookup helpers for SR documents.

A ContentSequence in an SR may hold a single item or several. The child field
of :class:`ContentNode` keeps that distinction as a tagged variant
(:class:`Single` / :class:`Many`); traversal code always goes through
:func:`normalize` first and never inspects the shape itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence, Union

from pydicom.dataset import Dataset

from .errors import ContentNotFoundError, ReportParseError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MeasuredValue:
    """Numeric payload of a NUM item. ``numeric_value`` keeps the document text."""

    numeric_value: Union[float, str]
    unit_code_value: str
    unit_code_meaning: Optional[str] = None


@dataclass(frozen=True)
class ReferencedSOP:
    sop_class_uid: str
    sop_instance_uid: str


# An entry of the report's image library is a bare SOP reference.
ReferencedImage = ReferencedSOP


@dataclass(frozen=True)
class Single:
    node: "ContentNode"


@dataclass(frozen=True)
class Many:
    nodes: tuple["ContentNode", ...] = ()


ChildContent = Union[Single, Many]


@dataclass(frozen=True)
class ContentNode:
    code_value: Optional[str]
    code_meaning: Optional[str] = None
    value_type: Optional[str] = None
    relationship_type: Optional[str] = None
    uid: Optional[str] = None
    measured_value: Optional[MeasuredValue] = None
    graphic_type: Optional[str] = None
    graphic_data: tuple[float, ...] = ()
    referenced_sop: Optional[ReferencedSOP] = None
    referenced_frame_of_reference_uid: Optional[str] = None
    content: Optional[ChildContent] = field(default=None, repr=False)

    @property
    def children(self) -> list["ContentNode"]:
        return normalize(self.content)


def normalize(content: Any) -> list[ContentNode]:
    """Return child content as a list regardless of how it was declared."""

    if content is None:
        return []
    if isinstance(content, Single):
        return [content.node]
    if isinstance(content, Many):
        return list(content.nodes)
    if isinstance(content, ContentNode):
        return [content]
    if isinstance(content, (list, tuple)):
        return list(content)
    raise TypeError(f"Unsupported content container: {type(content).__name__}")


def children_of(nodes: Iterable[ContentNode]) -> ChildContent:
    """Wrap nodes in the variant matching their count."""

    items = tuple(nodes)
    if len(items) == 1:
        return Single(items[0])
    return Many(items)


def find_optional_by_code(nodes: Sequence[ContentNode], code_value: str) -> Optional[ContentNode]:
    code = str(getattr(code_value, "value", code_value))
    for node in nodes:
        if node.code_value == code:
            return node
    return None


def find_by_code(
    nodes: Sequence[ContentNode],
    code_value: str,
    description: Optional[str] = None,
) -> ContentNode:
    """First node whose concept name code matches ``code_value``.

    Raises :class:`ContentNotFoundError` when no node matches.
    """

    node = find_optional_by_code(nodes, code_value)
    if node is None:
        raise ContentNotFoundError(str(getattr(code_value, "value", code_value)), description)
    return node


# ---------------------------------------------------------------------------
# pydicom conversion
# ---------------------------------------------------------------------------


def _first_item(dataset: Dataset, keyword: str) -> Optional[Dataset]:
    sequence = dataset.get(keyword)
    if not sequence:
        return None
    return sequence[0]


def _str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _measured_value(item: Dataset) -> Optional[MeasuredValue]:
    measured = _first_item(item, "MeasuredValueSequence")
    if measured is None or "NumericValue" not in measured:
        return None
    units = _first_item(measured, "MeasurementUnitsCodeSequence")
    return MeasuredValue(
        numeric_value=str(measured.NumericValue),
        unit_code_value=(_str_or_none(units.get("CodeValue")) or "") if units is not None else "",
        unit_code_meaning=_str_or_none(units.get("CodeMeaning")) if units is not None else None,
    )


def _graphic_data(item: Dataset) -> tuple[float, ...]:
    value = item.get("GraphicData")
    if value is None:
        return ()
    if isinstance(value, (int, float)):
        return (float(value),)
    return tuple(float(entry) for entry in value)


def _referenced_sop(item: Dataset) -> Optional[ReferencedSOP]:
    reference = _first_item(item, "ReferencedSOPSequence")
    if reference is None:
        return None
    return ReferencedSOP(
        sop_class_uid=str(reference.get("ReferencedSOPClassUID", "")),
        sop_instance_uid=str(reference.get("ReferencedSOPInstanceUID", "")),
    )


def content_node_from_dataset(item: Dataset) -> ContentNode:
    """Convert a pydicom content item (or the SR root dataset) into a node tree."""

    concept = _first_item(item, "ConceptNameCodeSequence")
    sequence = item.get("ContentSequence")

    content: Optional[ChildContent] = None
    if sequence is not None:
        content = children_of(content_node_from_dataset(child) for child in sequence)

    return ContentNode(
        code_value=_str_or_none(concept.get("CodeValue")) if concept is not None else None,
        code_meaning=_str_or_none(concept.get("CodeMeaning")) if concept is not None else None,
        value_type=_str_or_none(item.get("ValueType")),
        relationship_type=_str_or_none(item.get("RelationshipType")),
        uid=_str_or_none(item.get("UID")),
        measured_value=_measured_value(item),
        graphic_type=_str_or_none(item.get("GraphicType")),
        graphic_data=_graphic_data(item),
        referenced_sop=_referenced_sop(item),
        referenced_frame_of_reference_uid=_str_or_none(item.get("ReferencedFrameOfReferenceUID")),
        content=content,
    )


def report_root_from_dataset(dataset: Dataset) -> ContentNode:
    """Convert an SR instance, enforcing the fields every report root needs."""

    if "ConceptNameCodeSequence" not in dataset or not dataset.ConceptNameCodeSequence:
        raise ReportParseError("SR document has no ConceptNameCodeSequence")
    return content_node_from_dataset(dataset)
