"""Helpers for Azure resource IDs."""

from __future__ import annotations

from typing import Any


def resource_group_from_id(resource_id: str | None) -> str:
    """Extract the resource group name from an Azure resource ID."""
    if not resource_id:
        return ""
    parts = resource_id.split("/")
    for i, part in enumerate(parts):
        if part.lower() == "resourcegroups" and i + 1 < len(parts):
            return parts[i + 1]
    return ""


def name_from_id(resource_id: str | None) -> str:
    """The last segment of an Azure resource ID."""
    if not resource_id:
        return ""
    return resource_id.rstrip("/").split("/")[-1]


def enum_value(value: Any) -> str | None:
    """Plain string value of an SDK enum or string, None when unset."""
    if value is None:
        return None
    return str(getattr(value, "value", value))
