from .ids import new_plan_id, new_uuid, physical_id
from .time import ensure_aware, now_utc, parse_rfc3339, to_rfc3339

__all__ = [
    "new_uuid",
    "new_plan_id",
    "physical_id",
    "now_utc",
    "parse_rfc3339",
    "to_rfc3339",
    "ensure_aware",
]
