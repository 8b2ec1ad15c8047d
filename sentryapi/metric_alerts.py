"""Metric alert rules of a Sentry project."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from .client import Client
from .dashboards import _compact, _format_time, _parse_time
from .errors import APIError, TaskError

DEFAULT_POLL_INTERVAL = 5.0
POLL_ATTEMPTS = 5


def _float(value: Any) -> float | None:
    return None if value is None else float(value)


def _time_text(value: datetime | None) -> str | None:
    return None if value is None else _format_time(value)


@dataclass
class MetricAlertTriggerAction:
    """An action run when a metric alert trigger fires."""

    id: str | None = None
    alert_rule_trigger_id: str | None = None
    type: str | None = None
    target_type: str | None = None
    target_identifier: Any = None
    input_channel_id: str | None = None
    integration_id: int | None = None
    sentry_app_id: str | None = None
    date_created: datetime | None = None
    description: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetricAlertTriggerAction":
        return cls(
            id=data.get("id"),
            alert_rule_trigger_id=data.get("alertRuleTriggerId"),
            type=data.get("type"),
            target_type=data.get("targetType"),
            target_identifier=data.get("targetIdentifier"),
            input_channel_id=data.get("inputChannelId"),
            integration_id=data.get("integrationId"),
            sentry_app_id=data.get("sentryAppId"),
            date_created=_parse_time(data.get("dateCreated")),
            description=data.get("desc"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "alertRuleTriggerId": self.alert_rule_trigger_id,
                "type": self.type,
                "targetType": self.target_type,
                "targetIdentifier": self.target_identifier,
                "inputChannelId": self.input_channel_id,
                "integrationId": self.integration_id,
                "sentryAppId": self.sentry_app_id,
                "dateCreated": _time_text(self.date_created),
                "desc": self.description,
            }
        )


@dataclass
class MetricAlertTrigger:
    """A threshold of a metric alert and the actions it runs."""

    id: str | None = None
    alert_rule_id: str | None = None
    label: str | None = None
    threshold_type: int | None = None
    alert_threshold: float | None = None
    resolve_threshold: float | None = None
    date_created: datetime | None = None
    actions: list[MetricAlertTriggerAction] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetricAlertTrigger":
        return cls(
            id=data.get("id"),
            alert_rule_id=data.get("alertRuleId"),
            label=data.get("label"),
            threshold_type=data.get("thresholdType"),
            alert_threshold=_float(data.get("alertThreshold")),
            resolve_threshold=_float(data.get("resolveThreshold")),
            date_created=_parse_time(data.get("dateCreated")),
            actions=[MetricAlertTriggerAction.from_dict(a) for a in data.get("actions") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        result = _compact(
            {
                "id": self.id,
                "alertRuleId": self.alert_rule_id,
                "label": self.label,
                "thresholdType": self.threshold_type,
                "alertThreshold": self.alert_threshold,
                "resolveThreshold": self.resolve_threshold,
                "dateCreated": _time_text(self.date_created),
            }
        )
        # The server requires the actions key, even when there are none.
        result["actions"] = [action.to_dict() for action in self.actions]
        return result


@dataclass
class MetricAlert:
    """A metric alert rule."""

    id: str | None = None
    name: str | None = None
    environment: str | None = None
    dataset: str | None = None
    event_types: list[str] | None = None
    query: str | None = None
    aggregate: str | None = None
    time_window: float | None = None
    threshold_type: int | None = None
    resolve_threshold: float | None = None
    triggers: list[MetricAlertTrigger] | None = None
    projects: list[str] | None = None
    owner: str | None = None
    date_created: datetime | None = None
    task_uuid: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetricAlert":
        event_types = data.get("eventTypes")
        triggers = data.get("triggers")
        projects = data.get("projects")
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            environment=data.get("environment"),
            dataset=data.get("dataset"),
            event_types=None if event_types is None else list(event_types),
            query=data.get("query"),
            aggregate=data.get("aggregate"),
            time_window=_float(data.get("timeWindow")),
            threshold_type=data.get("thresholdType"),
            resolve_threshold=_float(data.get("resolveThreshold")),
            triggers=None if triggers is None else [MetricAlertTrigger.from_dict(t) for t in triggers],
            projects=None if projects is None else list(projects),
            owner=data.get("owner"),
            date_created=_parse_time(data.get("dateCreated")),
            task_uuid=data.get("uuid"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "name": self.name,
                "environment": self.environment,
                "dataset": self.dataset,
                "eventTypes": self.event_types,
                "query": self.query,
                "aggregate": self.aggregate,
                "timeWindow": self.time_window,
                "thresholdType": self.threshold_type,
                "resolveThreshold": self.resolve_threshold,
                "triggers": None if self.triggers is None else [t.to_dict() for t in self.triggers],
                "projects": self.projects,
                "owner": self.owner,
                "dateCreated": _time_text(self.date_created),
                "uuid": self.task_uuid,
            }
        )


class MetricAlertsService:
    """Metric alert rule endpoints of the Sentry API.

    When the server hands creation or update to an asynchronous task, the task
    is polled every ``poll_interval`` seconds, at most five times.
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
        return f"0/projects/{organization_slug}/{project_slug}/alert-rules/"

    def list(
        self, organization_slug: str, project_slug: str, cursor: str | None = None
    ) -> tuple[list[MetricAlert], str]:
        """Return one page of metric alerts and the cursor of the next page ("" if none)."""
        data, response = self.client.request(
            "GET", self._rules_path(organization_slug, project_slug), params={"cursor": cursor}
        )
        return [MetricAlert.from_dict(item) for item in data or []], response.cursor

    def get(self, organization_slug: str, project_slug: str, alert_id: str) -> MetricAlert:
        """Fetch a metric alert; it is looked up by organization, the project is not needed."""
        data, _ = self.client.request("GET", f"0/organizations/{organization_slug}/alert-rules/{alert_id}/")
        return MetricAlert.from_dict(data or {})

    def create(self, organization_slug: str, project_slug: str, alert: MetricAlert) -> MetricAlert:
        """Create a metric alert, waiting for the creation task if the server starts one."""
        data, response = self.client.request(
            "POST", self._rules_path(organization_slug, project_slug), body=alert.to_dict()
        )
        return self._settle(organization_slug, project_slug, data, response.status_code)

    def update(
        self, organization_slug: str, project_slug: str, alert_id: str, alert: MetricAlert
    ) -> MetricAlert:
        """Replace a metric alert, waiting for the task if the server starts one."""
        data, response = self.client.request(
            "PUT",
            f"{self._rules_path(organization_slug, project_slug)}{alert_id}/",
            body=alert.to_dict(),
        )
        return self._settle(organization_slug, project_slug, data, response.status_code)

    def delete(self, organization_slug: str, project_slug: str, alert_id: str) -> None:
        """Delete a metric alert."""
        self.client.request("DELETE", f"{self._rules_path(organization_slug, project_slug)}{alert_id}/")

    def _settle(self, organization_slug: str, project_slug: str, data: Any, status_code: int) -> MetricAlert:
        alert = MetricAlert.from_dict(data or {})
        if status_code != 202:
            return alert
        if alert.task_uuid is None:
            raise TaskError("missing task uuid")
        return self._wait_for_task(organization_slug, project_slug, alert.task_uuid)

    def _wait_for_task(self, organization_slug: str, project_slug: str, task_uuid: str) -> MetricAlert:
        path = f"0/projects/{organization_slug}/{project_slug}/alert-rule-task/{task_uuid}/"
        for _ in range(POLL_ATTEMPTS):
            self._sleep(self.poll_interval)
            try:
                data, _ = self.client.request("GET", path)
            except APIError as exc:
                if exc.status_code == 404:
                    raise TaskError(
                        f"cannot find metric alert creation task with UUID {task_uuid}"
                    ) from exc
                raise
            detail = data or {}
            status, rule = detail.get("status"), detail.get("alertRule")
            if status is None or rule is None:
                continue
            if status == "success":
                return MetricAlert.from_dict(rule)
            if status == "failed":
                raise TaskError(
                    detail.get("error") or "error while running the metric alert creation task"
                )
        raise TaskError("getting the status of the metric alert creation from Sentry took too long")