"""Binding of report measurements to image display sets.

Display sets may arrive before or after the report that references them.
:meth:`ReconciliationEngine.register` scans what the registry already holds
and then keeps scanning every display set added afterwards.
"""

from __future__ import annotations

import logging
from typing import Callable

from structured_report.models import Coordinate, CoordinateBinding, Measurement, ReportRecord

from .models import DisplaySet, ImageSet
from .registry import DisplaySetRegistry, Subscription


logger = logging.getLogger(__name__)

AddMeasurement = Callable[[Measurement, Coordinate, str, str], None]


class ReconciliationEngine:
    """Bind unresolved coordinates to image ids as image sets appear.

    ``add_measurement(measurement, coordinate, image_id, display_set_uid)`` is
    called once per coordinate binding. A coordinate that is already bound is
    never emitted again, so repeated passes over the same display set are
    no-ops.
    """

    def __init__(self, add_measurement: AddMeasurement, auto_dispose: bool = True) -> None:
        self._add_measurement = add_measurement
        self.auto_dispose = auto_dispose

    def reconcile(self, record: ReportRecord, collection: DisplaySet) -> int:
        pending = record.pending_measurements()
        if not pending:
            return 0

        # Only image stacks can hold referenced images; this also filters out SR display sets.
        if not isinstance(collection, ImageSet):
            return 0

        sop_class_uids = collection.sop_class_uids
        pending = [
            measurement
            for measurement in pending
            if any(coord.sop_class_uid in sop_class_uids for coord in measurement.coords)
        ]
        if not pending:
            return 0

        wanted = {
            measurement.coords[index].sop_instance_uid
            for measurement in pending
            for index in measurement.unbound_indices()
        }

        emitted = 0
        for image_index, image in enumerate(collection.images):
            if not pending:
                break
            if image.sop_instance_uid not in wanted:
                continue

            image_id = collection.image_id_at(image_index)
            if image_id is None:
                logger.debug(
                    "No image id for %s at index %d in display set %s",
                    image.sop_instance_uid,
                    image_index,
                    collection.display_set_uid,
                )
                continue

            for measurement in list(pending):
                if not measurement.references(image.sop_instance_uid):
                    continue
                emitted += self._bind_matching(measurement, image.sop_instance_uid, image_id, collection)
                if not measurement.unbound_indices():
                    pending.remove(measurement)

        if emitted:
            logger.info(
                "Bound %d coordinate(s) from SR %s to display set %s",
                emitted,
                record.display_set_uid,
                collection.display_set_uid,
            )
        return emitted

    def _bind_matching(
        self,
        measurement: Measurement,
        sop_instance_uid: str,
        image_id: str,
        collection: ImageSet,
    ) -> int:
        emitted = 0
        for index in measurement.unbound_indices():
            coordinate = measurement.coords[index]
            if coordinate.sop_instance_uid != sop_instance_uid:
                continue
            try:
                self._add_measurement(measurement, coordinate, image_id, collection.display_set_uid)
            except Exception as exc:
                logger.warning(
                    "Failed to add measurement %s to display set %s: %s",
                    measurement.tracking_identifier,
                    collection.display_set_uid,
                    exc,
                )
                continue
            measurement.bind(index, CoordinateBinding(image_id=image_id, display_set_uid=collection.display_set_uid))
            emitted += 1
        return emitted

    def reconcile_all(self, record: ReportRecord, collections: list[DisplaySet]) -> int:
        return sum(self.reconcile(record, collection) for collection in collections)

    def register(self, record: ReportRecord, registry: DisplaySetRegistry) -> Subscription:
        """Reconcile against current display sets, then watch for new ones.

        The returned subscription stays active until disposed. With
        ``auto_dispose`` it disposes itself once nothing is left to bind.
        """

        self.reconcile_all(record, registry.current_collections())

        def _on_added(display_set: DisplaySet) -> None:
            self.reconcile(record, display_set)
            if self.auto_dispose and not record.pending_measurements():
                logger.debug("SR %s fully reconciled; unsubscribing", record.display_set_uid)
                subscription.dispose()

        subscription = registry.on_collection_added(_on_added)
        if self.auto_dispose and not record.pending_measurements():
            subscription.dispose()
        return subscription
