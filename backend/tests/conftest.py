"""Shared builders for SR content trees and image display sets."""

from __future__ import annotations

from typing import Optional, Sequence

import pydicom
import pytest
from pydicom.dataset import Dataset, FileDataset, FileMetaDataset

from display_sets.models import ImageInstance, ImageSet
from structured_report.codes import ConceptCode
from structured_report.content import ContentNode, MeasuredValue, ReferencedSOP, children_of

CT_IMAGE_STORAGE = "1.2.840.10008.5.1.4.1.1.2"
MR_IMAGE_STORAGE = "1.2.840.10008.5.1.4.1.1.4"
COMPREHENSIVE_SR = "1.2.840.10008.5.1.4.1.1.88.33"


class NodeFactory:
    """Small DSL for building TID 1500 trees by hand."""

    ct = CT_IMAGE_STORAGE
    mr = MR_IMAGE_STORAGE

    @staticmethod
    def tracking_uid(uid: str) -> ContentNode:
        return ContentNode(
            code_value=ConceptCode.TRACKING_UNIQUE_IDENTIFIER.value,
            code_meaning="Tracking Unique Identifier",
            value_type="UIDREF",
            relationship_type="HAS OBS CONTEXT",
            uid=uid,
        )

    @staticmethod
    def image_ref(sop_instance_uid: str, sop_class_uid: str = CT_IMAGE_STORAGE) -> ContentNode:
        return ContentNode(
            code_value="111040",
            code_meaning="Original Source",
            value_type="IMAGE",
            relationship_type="SELECTED FROM",
            referenced_sop=ReferencedSOP(sop_class_uid, sop_instance_uid),
        )

    @classmethod
    def scoord(
        cls,
        sop_instance_uid: Optional[str] = "1.2.3.100",
        relationship_type: str = "INFERRED FROM",
        graphic_type: str = "POLYLINE",
        graphic_data: Sequence[float] = (10.0, 10.0, 40.0, 40.0),
        sop_class_uid: str = CT_IMAGE_STORAGE,
    ) -> ContentNode:
        content = None
        if sop_instance_uid is not None:
            content = children_of([cls.image_ref(sop_instance_uid, sop_class_uid)])
        return ContentNode(
            code_value="111030",
            code_meaning="Image Region",
            value_type="SCOORD",
            relationship_type=relationship_type,
            graphic_type=graphic_type,
            graphic_data=tuple(graphic_data),
            content=content,
        )

    @staticmethod
    def scoord3d(
        frame_of_reference_uid: str = "F",
        relationship_type: str = "INFERRED FROM",
        graphic_type: str = "POINT",
        graphic_data: Sequence[float] = (1.0, 2.0, 3.0),
    ) -> ContentNode:
        return ContentNode(
            code_value="111030",
            code_meaning="Image Region",
            value_type="SCOORD3D",
            relationship_type=relationship_type,
            graphic_type=graphic_type,
            graphic_data=tuple(graphic_data),
            referenced_frame_of_reference_uid=frame_of_reference_uid,
        )

    @staticmethod
    def num(
        meaning: str = "Long Axis",
        value: Optional[str] = "31.0",
        unit: str = "mm",
        child: Optional[ContentNode] = None,
        code_value: str = "G-A185",
    ) -> ContentNode:
        measured = MeasuredValue(numeric_value=value, unit_code_value=unit) if value is not None else None
        return ContentNode(
            code_value=code_value,
            code_meaning=meaning,
            value_type="NUM",
            relationship_type="CONTAINS",
            measured_value=measured,
            content=children_of([child]) if child is not None else None,
        )

    @staticmethod
    def group(*children: ContentNode) -> ContentNode:
        return ContentNode(
            code_value=ConceptCode.MEASUREMENT_GROUP.value,
            code_meaning="Measurement Group",
            value_type="CONTAINER",
            relationship_type="CONTAINS",
            content=children_of(children),
        )

    @classmethod
    def report(
        cls,
        groups: Sequence[ContentNode],
        images: Sequence[ContentNode] = (),
        code_value: str = ConceptCode.IMAGING_MEASUREMENT_REPORT.value,
        include_library: bool = True,
        include_measurements: bool = True,
    ) -> ContentNode:
        sections = []
        if include_library:
            library_group = ContentNode(
                code_value=ConceptCode.IMAGE_LIBRARY_GROUP.value,
                code_meaning="Image Library Group",
                value_type="CONTAINER",
                relationship_type="CONTAINS",
                content=children_of(images),
            )
            sections.append(
                ContentNode(
                    code_value=ConceptCode.IMAGE_LIBRARY.value,
                    code_meaning="Image Library",
                    value_type="CONTAINER",
                    relationship_type="CONTAINS",
                    content=children_of([library_group]),
                )
            )
        if include_measurements:
            sections.append(
                ContentNode(
                    code_value=ConceptCode.IMAGING_MEASUREMENTS.value,
                    code_meaning="Imaging Measurements",
                    value_type="CONTAINER",
                    relationship_type="CONTAINS",
                    content=children_of(groups),
                )
            )
        return ContentNode(
            code_value=code_value,
            code_meaning="Imaging Measurement Report",
            value_type="CONTAINER",
            content=children_of(sections),
        )


def make_image_set(
    uid: str,
    sop_instance_uids: Sequence[str],
    sop_class_uid: str = CT_IMAGE_STORAGE,
) -> ImageSet:
    return ImageSet(
        display_set_uid=uid,
        images=[ImageInstance(sop_instance_uid=sop, sop_class_uid=sop_class_uid) for sop in sop_instance_uids],
        image_ids=[f"wadouri:{uid}/{index}" for index, _ in enumerate(sop_instance_uids)],
    )


@pytest.fixture
def nodes() -> type[NodeFactory]:
    return NodeFactory


@pytest.fixture
def image_set_factory():
    return make_image_set


# pydicom datasets


def _code(value: str, meaning: str, scheme: str = "DCM") -> Dataset:
    code = Dataset()
    code.CodeValue = value
    code.CodingSchemeDesignator = scheme
    code.CodeMeaning = meaning
    return code


def _item(value_type: str, code: Dataset, relationship_type: Optional[str] = "CONTAINS") -> Dataset:
    item = Dataset()
    if relationship_type:
        item.RelationshipType = relationship_type
    item.ValueType = value_type
    item.ConceptNameCodeSequence = [code]
    return item


def _image_item(sop_instance_uid: str, sop_class_uid: str, relationship_type: str) -> Dataset:
    image = _item("IMAGE", _code("111040", "Original Source"), relationship_type)
    reference = Dataset()
    reference.ReferencedSOPClassUID = sop_class_uid
    reference.ReferencedSOPInstanceUID = sop_instance_uid
    image.ReferencedSOPSequence = [reference]
    return image


def make_sr_dataset(
    referenced_sop_instance_uid: str = "1.2.3.100",
    tracking_uid: str = "1.2.3.999",
    sop_class_uid: str = CT_IMAGE_STORAGE,
    root_code: str = ConceptCode.IMAGING_MEASUREMENT_REPORT.value,
) -> Dataset:
    """SR instance with one geometric measurement group referencing one image."""

    ds = Dataset()
    ds.SOPClassUID = COMPREHENSIVE_SR
    ds.SOPInstanceUID = "1.2.3.4.5.6.7"
    ds.StudyInstanceUID = "1.2.3.4"
    ds.SeriesInstanceUID = "1.2.3.4.5"
    ds.SeriesDescription = "Lesion measurements"
    ds.SeriesNumber = 1001
    ds.SeriesDate = "20240101"
    ds.Modality = "SR"
    ds.ValueType = "CONTAINER"
    ds.ContinuityOfContent = "SEPARATE"
    ds.ConceptNameCodeSequence = [_code(root_code, "Imaging Measurement Report")]

    library_group = _item("CONTAINER", _code(ConceptCode.IMAGE_LIBRARY_GROUP.value, "Image Library Group"))
    library_group.ContentSequence = [
        _image_item(referenced_sop_instance_uid, sop_class_uid, "CONTAINS"),
    ]
    library = _item("CONTAINER", _code(ConceptCode.IMAGE_LIBRARY.value, "Image Library"))
    library.ContentSequence = [library_group]

    tracking = _item("UIDREF", _code(ConceptCode.TRACKING_UNIQUE_IDENTIFIER.value, "Tracking Unique Identifier"), "HAS OBS CONTEXT")
    tracking.UID = tracking_uid

    scoord = _item("SCOORD", _code("111030", "Image Region"), "INFERRED FROM")
    scoord.GraphicType = "POLYLINE"
    scoord.GraphicData = [10.0, 10.0, 40.0, 40.0]
    scoord.ContentSequence = [_image_item(referenced_sop_instance_uid, sop_class_uid, "SELECTED FROM")]

    num = _item("NUM", _code("G-A185", "Long Axis", "SRT"))
    measured = Dataset()
    measured.NumericValue = "31.0"
    measured.MeasurementUnitsCodeSequence = [_code("mm", "millimeter", "UCUM")]
    num.MeasuredValueSequence = [measured]

    group = _item("CONTAINER", _code(ConceptCode.MEASUREMENT_GROUP.value, "Measurement Group"))
    group.ContentSequence = [tracking, scoord, num]

    measurements = _item("CONTAINER", _code(ConceptCode.IMAGING_MEASUREMENTS.value, "Imaging Measurements"))
    measurements.ContentSequence = [group]

    ds.ContentSequence = [library, measurements]
    return ds


def _save(ds: Dataset, path, sop_class_uid: str) -> None:
    file_meta = FileMetaDataset()
    file_meta.MediaStorageSOPClassUID = sop_class_uid
    file_meta.MediaStorageSOPInstanceUID = ds.SOPInstanceUID
    file_meta.TransferSyntaxUID = pydicom.uid.ImplicitVRLittleEndian

    file_ds = FileDataset(str(path), {}, file_meta=file_meta, preamble=b"\0" * 128)
    file_ds.update(ds)
    file_ds.save_as(path, implicit_vr=True, little_endian=True)


def write_sr(path, **kwargs) -> None:
    _save(make_sr_dataset(**kwargs), path, COMPREHENSIVE_SR)


def write_image(
    path,
    *,
    sop_instance_uid: str,
    series_instance_uid: str = "1.2.3.4.6",
    instance_number: int = 1,
    sop_class_uid: str = CT_IMAGE_STORAGE,
) -> None:
    ds = Dataset()
    ds.SOPClassUID = sop_class_uid
    ds.SOPInstanceUID = sop_instance_uid
    ds.StudyInstanceUID = "1.2.3.4"
    ds.SeriesInstanceUID = series_instance_uid
    ds.SeriesDescription = "Axial CT"
    ds.SeriesNumber = 2
    ds.Modality = "CT"
    ds.InstanceNumber = instance_number
    _save(ds, path, sop_class_uid)


@pytest.fixture
def sr_dataset() -> Dataset:
    return make_sr_dataset()


@pytest.fixture
def dicom_writer():
    class _Writer:
        sr = staticmethod(write_sr)
        image = staticmethod(write_image)
        sr_dataset = staticmethod(make_sr_dataset)

    return _Writer
