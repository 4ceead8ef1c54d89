"""Public plan exports for stackplan."""

from __future__ import annotations

from .document import (
    PLAN_FORMAT_VERSION,
    dumps_plan,
    loads_plan,
    plan_from_document,
    plan_to_document,
)
from .plan import Plan, ResourceDescription
from .record import (
    StateRecord,
    dumps_record,
    loads_record,
    record_from_document,
    record_to_document,
)
from .synthesizer import synthesize

__all__ = [
    "Plan",
    "ResourceDescription",
    "synthesize",
    "PLAN_FORMAT_VERSION",
    "plan_to_document",
    "plan_from_document",
    "dumps_plan",
    "loads_plan",
    "StateRecord",
    "record_to_document",
    "record_from_document",
    "dumps_record",
    "loads_record",
]
