"""Parsing of TID 1500 Imaging Measurement Report structured reports."""

from .config import SRHandlerConfig, load_config  # noqa: F401
from .content import (  # noqa: F401
    ContentNode,
    Many,
    MeasuredValue,
    ReferencedImage,
    ReferencedSOP,
    Single,
    find_by_code,
    find_optional_by_code,
    normalize,
)
from .diagnostics import Diagnostic, Diagnostics, Severity  # noqa: F401
from .errors import ContentNotFoundError, MissingTrackingIdentifierError, ReportParseError  # noqa: F401
from .models import Coordinate, CoordinateBinding, CoordinateKind, Label, Measurement, ReportRecord  # noqa: F401
from .report import build_report_record, report_record_from_dataset  # noqa: F401
