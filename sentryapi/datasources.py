"""Read-only views of Sentry objects, shaped as flat attribute maps."""

from __future__ import annotations

from typing import Any

from .helpers import build_three_part_id
from .issue_alerts import IssueAlertsService


def _copies(items: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    return [dict(item) for item in items or []]


def read_issue_alert_data(
    service: IssueAlertsService, organization: str, project: str, internal_id: str
) -> dict[str, Any]:
    """Fetch an issue alert and return its attributes.

    The ``id`` attribute is the ``organization/project/alert`` composite ID.
    Conditions, filters and actions are lists of free-form objects, empty
    when the server sent none. Errors from the API are raised unchanged.
    """
    alert = service.get(organization, project, internal_id)
    return {
        "id": build_three_part_id(organization, project, alert.id or ""),
        "organization": organization,
        "project": project,
        "internal_id": alert.id,
        "conditions": _copies(alert.conditions),
        "filters": _copies(alert.filters),
        "actions": _copies(alert.actions),
        "action_match": alert.action_match,
        "filter_match": alert.filter_match,
        "frequency": alert.frequency,
        "name": alert.name,
        "environment": alert.environment,
    }