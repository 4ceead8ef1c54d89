from __future__ import annotations

import hashlib
import uuid


def new_uuid() -> str:
    """Generate a UUID4 string."""
    return str(uuid.uuid4())


def new_plan_id() -> str:
    """Generate a new Plan ID."""
    return new_uuid()


def physical_id(resource_type: str, identifier: str) -> str:
    """
    Derive a stable physical id for a resource.

    Same (type, identifier) always yields the same value, e.g.
    ``aws-ec2-vpc-network-3f2a9c1d``.
    """
    digest = hashlib.sha256(f"{resource_type}/{identifier}".encode("utf-8")).hexdigest()
    prefix = "-".join(part for part in resource_type.lower().split(":") if part)
    return f"{prefix}-{identifier.lower()}-{digest[:8]}"
