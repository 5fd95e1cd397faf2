"""Alert headers attached to successful mutating responses."""
from __future__ import annotations

from metis.core.settings import settings


def _alert(action: str, entity_name: str, param: str) -> dict[str, str]:
    return {
        f"X-{settings.app_name}-alert": f"{settings.app_name}.{entity_name}.{action}",
        f"X-{settings.app_name}-params": param,
    }


def entity_creation_alert(entity_name: str, param: str) -> dict[str, str]:
    """Headers announcing that an entity was created."""
    return _alert("created", entity_name, param)


def entity_update_alert(entity_name: str, param: str) -> dict[str, str]:
    """Headers announcing that an entity was updated."""
    return _alert("updated", entity_name, param)


def entity_deletion_alert(entity_name: str, param: str) -> dict[str, str]:
    """Headers announcing that an entity was deleted."""
    return _alert("deleted", entity_name, param)
