"""Issue alert rules of a Sentry project."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from .client import Client
from .dashboards import _compact, _format_time, _parse_time
from .errors import APIError, TaskError

DEFAULT_POLL_INTERVAL = 5.0
POLL_ATTEMPTS = 5


def _maps(value: Any) -> list[dict[str, Any]] | None:
    return None if value is None else [dict(item) for item in value]


@dataclass
class IssueAlertCreatedBy:
    """The user who created an issue alert."""

    id: int | None = None
    name: str | None = None
    email: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IssueAlertCreatedBy":
        return cls(id=data.get("id"), name=data.get("name"), email=data.get("email"))

    def to_dict(self) -> dict[str, Any]:
        return _compact({"id": self.id, "name": self.name, "email": self.email})


@dataclass
class IssueAlert:
    """An issue alert rule configured for a project.

    Conditions, filters and actions are free-form objects whose structure
    depends on the rule type.
    """

    id: str | None = None
    conditions: list[dict[str, Any]] | None = None
    filters: list[dict[str, Any]] | None = None
    actions: list[dict[str, Any]] | None = None
    action_match: str | None = None
    filter_match: str | None = None
    frequency: int | None = None
    name: str | None = None
    date_created: datetime | None = None
    owner: str | None = None
    created_by: IssueAlertCreatedBy | None = None
    environment: str | None = None
    projects: list[str] | None = None
    task_uuid: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IssueAlert":
        created_by = data.get("createdBy")
        projects = data.get("projects")
        return cls(
            id=data.get("id"),
            conditions=_maps(data.get("conditions")),
            filters=_maps(data.get("filters")),
            actions=_maps(data.get("actions")),
            action_match=data.get("actionMatch"),
            filter_match=data.get("filterMatch"),
            frequency=data.get("frequency"),
            name=data.get("name"),
            date_created=_parse_time(data.get("dateCreated")),
            owner=data.get("owner"),
            created_by=None if created_by is None else IssueAlertCreatedBy.from_dict(created_by),
            environment=data.get("environment"),
            projects=None if projects is None else list(projects),
            task_uuid=data.get("uuid"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "conditions": self.conditions,
                "filters": self.filters,
                "actions": self.actions,
                "actionMatch": self.action_match,
                "filterMatch": self.filter_match,
                "frequency": self.frequency,
                "name": self.name,
                "dateCreated": None if self.date_created is None else _format_time(self.date_created),
                "owner": self.owner,
                "createdBy": None if self.created_by is None else self.created_by.to_dict(),
                "environment": self.environment,
                "projects": self.projects,
                "uuid": self.task_uuid,
            }
        )


class IssueAlertsService:
    """Issue alert rule endpoints of the Sentry API.

    When the server hands rule creation to an asynchronous task, the task is
    polled every ``poll_interval`` seconds, at most five times.
    """

    def __init__(
        self,
        client: Client,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.poll_interval = poll_interval
        self._sleep = sleep

    @staticmethod
    def _rules_path(organization_slug: str, project_slug: str) -> str:
        return f"0/projects/{organization_slug}/{project_slug}/rules/"

    def list(
        self, organization_slug: str, project_slug: str, cursor: str | None = None
    ) -> tuple[list[IssueAlert], str]:
        """Return one page of issue alerts and the cursor of the next page ("" if none)."""
        data, response = self.client.request(
            "GET", self._rules_path(organization_slug, project_slug), params={"cursor": cursor}
        )
        return [IssueAlert.from_dict(item) for item in data or []], response.cursor

    def get(self, organization_slug: str, project_slug: str, alert_id: str) -> IssueAlert:
        """Fetch an issue alert."""
        data, _ = self.client.request(
            "GET", f"{self._rules_path(organization_slug, project_slug)}{alert_id}/"
        )
        return IssueAlert.from_dict(data or {})

    def create(self, organization_slug: str, project_slug: str, alert: IssueAlert) -> IssueAlert:
        """Create an issue alert, waiting for the creation task if the server starts one."""
        data, response = self.client.request(
            "POST", self._rules_path(organization_slug, project_slug), body=alert.to_dict()
        )
        created = IssueAlert.from_dict(data or {})
        if response.status_code == 202:
            if created.task_uuid is None:
                raise TaskError("missing task uuid")
            return self._wait_for_task(organization_slug, project_slug, created.task_uuid)
        return created

    def _wait_for_task(self, organization_slug: str, project_slug: str, task_uuid: str) -> IssueAlert:
        path = f"0/projects/{organization_slug}/{project_slug}/rule-task/{task_uuid}/"
        for _ in range(POLL_ATTEMPTS):
            self._sleep(self.poll_interval)
            try:
                data, _ = self.client.request("GET", path)
            except APIError as exc:
                if exc.status_code == 404:
                    raise TaskError(
                        f"cannot find issue alert creation task with UUID {task_uuid}"
                    ) from exc
                raise
            detail = data or {}
            status, rule = detail.get("status"), detail.get("rule")
            if status is None or rule is None:
                continue
            if status == "success":
                return IssueAlert.from_dict(rule)
            if status == "failed":
                raise TaskError(
                    detail.get("error") or "error while running the issue alert creation task"
                )
        raise TaskError("getting the status of the issue alert creation from Sentry took too long")

    def update(
        self, organization_slug: str, project_slug: str, alert_id: str, alert: IssueAlert
    ) -> IssueAlert:
        """Replace an issue alert and return it as stored by the server."""
        data, _ = self.client.request(
            "PUT",
            f"{self._rules_path(organization_slug, project_slug)}{alert_id}/",
            body=alert.to_dict(),
        )
        return IssueAlert.from_dict(data or {})

    def delete(self, organization_slug: str, project_slug: str, alert_id: str) -> None:
        """Delete an issue alert."""
        self.client.request("DELETE", f"{self._rules_path(organization_slug, project_slug)}{alert_id}/")