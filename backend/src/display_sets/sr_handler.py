"""SOP class handler turning SR series into measurement display sets."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence

from pydicom.dataset import Dataset
from pydicom.uid import generate_uid

from structured_report.codes import SOP_CLASS_HANDLER_NAME
from structured_report.config import SRHandlerConfig
from structured_report.errors import ReportParseError
from structured_report.report import report_record_from_dataset

from .models import SRDisplaySet
from .reconcile import AddMeasurement, ReconciliationEngine
from .registry import DisplaySetRegistry


logger = logging.getLogger(__name__)

HANDLER_ID = f"structured_report.sopClassHandlerModule.{SOP_CLASS_HANDLER_NAME}"


class SRSopClassHandler:
    name = SOP_CLASS_HANDLER_NAME

    def __init__(
        self,
        registry: DisplaySetRegistry,
        add_measurement: AddMeasurement,
        config: Optional[SRHandlerConfig] = None,
        uid_factory: Callable[[], str] = generate_uid,
    ) -> None:
        self.config = config or SRHandlerConfig()
        self.registry = registry
        self.engine = ReconciliationEngine(add_measurement, auto_dispose=self.config.auto_dispose)
        self._uid_factory = uid_factory

    @property
    def sop_class_uids(self) -> list[str]:
        return list(self.config.supported_sop_class_uids)

    def get_display_sets_from_series(self, instances: Sequence[Dataset]) -> list[SRDisplaySet]:
        """Build the SR display set for a series and start reconciling it.

        Only the first instance is read. Reports of an unsupported template
        produce an empty list. The caller adds the result to the registry.
        """

        if not instances:
            raise ReportParseError("No instances were provided")

        record = report_record_from_dataset(instances[0], self.config, self._uid_factory)
        if record is None:
            return []

        display_set = SRDisplaySet(
            display_set_uid=record.display_set_uid,
            study_instance_uid=record.study_instance_uid,
            series_instance_uid=record.series_instance_uid,
            series_description=record.series_description,
            series_number=record.series_number,
            modality=record.modality,
            record=record,
            sop_class_handler_id=HANDLER_ID,
        )
        display_set.subscription = self.engine.register(record, self.registry)
        return [display_set]


def get_sop_class_handler_module(
    registry: DisplaySetRegistry,
    add_measurement: AddMeasurement,
    config: Optional[SRHandlerConfig] = None,
) -> list[dict[str, Any]]:
    """Describe the SR handler to a host viewer.

    ``add_measurement`` receives every coordinate binding the handler makes.
    """

    handler = SRSopClassHandler(registry, add_measurement, config=config)
    return [
        {
            "name": handler.name,
            "sop_class_uids": handler.sop_class_uids,
            "get_display_sets_from_series": handler.get_display_sets_from_series,
        }
    ]
