"""Display sets, their registry and SR measurement reconciliation."""

from .models import DisplaySet, ImageInstance, ImageSet, SRDisplaySet  # noqa: F401
from .reconcile import ReconciliationEngine  # noqa: F401
from .registry import DisplaySetRegistry, Subscription  # noqa: F401
from .sr_handler import SRSopClassHandler, get_sop_class_handler_module  # noqa: F401
