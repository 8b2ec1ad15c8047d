"""Dashboards and dashboard widgets of a Sentry organization."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .client import Client

_FRACTION = re.compile(r"\.(\d+)(?=[+-]\d\d:\d\d$|$)")


def _parse_time(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp as sent by Sentry."""
    if value is None:
        return None
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text)
    return datetime.fromisoformat(text)


def _format_time(value: datetime) -> str:
    """Format a timestamp as RFC 3339 with the shortest fractional part."""
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset()
    if offset is None or not offset:
        return text + "Z"
    return text + value.strftime("%z")[:3] + ":" + value.strftime("%z")[3:]


def _compact(pairs: dict[str, Any]) -> dict[str, Any]:
    """Drop unset values and empty lists."""
    return {
        key: value
        for key, value in pairs.items()
        if value is not None and not (isinstance(value, list) and not value)
    }


def _strings(value: Any) -> list[str] | None:
    return None if value is None else list(value)


@dataclass
class DashboardWidgetLayout:
    """Position and size of a widget on the dashboard grid."""

    x: int | None = None
    y: int | None = None
    w: int | None = None
    h: int | None = None
    min_h: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DashboardWidgetLayout":
        return cls(
            x=data.get("x"),
            y=data.get("y"),
            w=data.get("w"),
            h=data.get("h"),
            min_h=data.get("minH"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact({"x": self.x, "y": self.y, "w": self.w, "h": self.h, "minH": self.min_h})


@dataclass
class DashboardWidgetQuery:
    """A query that feeds a dashboard widget."""

    id: str | None = None
    fields: list[str] | None = None
    aggregates: list[str] | None = None
    columns: list[str] | None = None
    field_aliases: list[str] | None = None
    name: str | None = None
    conditions: str | None = None
    order_by: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DashboardWidgetQuery":
        return cls(
            id=data.get("id"),
            fields=_strings(data.get("fields")),
            aggregates=_strings(data.get("aggregates")),
            columns=_strings(data.get("columns")),
            field_aliases=_strings(data.get("fieldAliases")),
            name=data.get("name"),
            conditions=data.get("conditions"),
            order_by=data.get("orderby"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "fields": self.fields,
                "aggregates": self.aggregates,
                "columns": self.columns,
                "fieldAliases": self.field_aliases,
                "name": self.name,
                "conditions": self.conditions,
                "orderby": self.order_by,
            }
        )


@dataclass
class DashboardWidget:
    """A widget shown on a dashboard."""

    id: str | None = None
    title: str | None = None
    display_type: str | None = None
    interval: str | None = None
    queries: list[DashboardWidgetQuery] | None = None
    widget_type: str | None = None
    limit: int | None = None
    layout: DashboardWidgetLayout | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DashboardWidget":
        queries = data.get("queries")
        layout = data.get("layout")
        return cls(
            id=data.get("id"),
            title=data.get("title"),
            display_type=data.get("displayType"),
            interval=data.get("interval"),
            queries=None if queries is None else [DashboardWidgetQuery.from_dict(q) for q in queries],
            widget_type=data.get("widgetType"),
            limit=data.get("limit"),
            layout=None if layout is None else DashboardWidgetLayout.from_dict(layout),
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "title": self.title,
                "displayType": self.display_type,
                "interval": self.interval,
                "queries": None if self.queries is None else [q.to_dict() for q in self.queries],
                "widgetType": self.widget_type,
                "limit": self.limit,
                "layout": None if self.layout is None else self.layout.to_dict(),
            }
        )


@dataclass
class Dashboard:
    """A dashboard of an organization."""

    id: str | None = None
    title: str | None = None
    date_created: datetime | None = None
    widgets: list[DashboardWidget] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Dashboard":
        widgets = data.get("widgets")
        return cls(
            id=data.get("id"),
            title=data.get("title"),
            date_created=_parse_time(data.get("dateCreated")),
            widgets=None if widgets is None else [DashboardWidget.from_dict(w) for w in widgets],
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "title": self.title,
                "dateCreated": None if self.date_created is None else _format_time(self.date_created),
                "widgets": None if self.widgets is None else [w.to_dict() for w in self.widgets],
            }
        )


class DashboardsService:
    """Dashboard endpoints of the Sentry API."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def list(self, organization_slug: str, cursor: str | None = None) -> tuple[list[Dashboard], str]:
        """Return one page of dashboards and the cursor of the next page ("" if none)."""
        data, response = self.client.request(
            "GET", f"0/organizations/{organization_slug}/dashboards/", params={"cursor": cursor}
        )
        return [Dashboard.from_dict(item) for item in data or []], response.cursor

    def get(self, organization_slug: str, dashboard_id: str) -> Dashboard:
        """Fetch a dashboard."""
        data, _ = self.client.request("GET", f"0/organizations/{organization_slug}/dashboards/{dashboard_id}/")
        return Dashboard.from_dict(data or {})

    def create(self, organization_slug: str, dashboard: Dashboard) -> Dashboard:
        """Create a dashboard and return it as stored by the server."""
        data, _ = self.client.request(
            "POST", f"0/organizations/{organization_slug}/dashboards/", body=dashboard.to_dict()
        )
        return Dashboard.from_dict(data or {})

    def update(self, organization_slug: str, dashboard_id: str, dashboard: Dashboard) -> Dashboard:
        """Replace a dashboard and return it as stored by the server."""
        data, _ = self.client.request(
            "PUT",
            f"0/organizations/{organization_slug}/dashboards/{dashboard_id}/",
            body=dashboard.to_dict(),
        )
        return Dashboard.from_dict(data or {})

    def delete(self, organization_slug: str, dashboard_id: str) -> None:
        """Delete a dashboard."""
        self.client.request("DELETE", f"0/organizations/{organization_slug}/dashboards/{dashboard_id}/")


class DashboardWidgetsService:
    """Dashboard widget endpoints of the Sentry API."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def validate(self, organization_slug: str, widget: DashboardWidget) -> dict[str, list[str]] | None:
        """Check a widget; return the errors by field, or None when it is valid."""
        data, _ = self.client.request(
            "POST", f"0/organizations/{organization_slug}/dashboards/widgets/", body=widget.to_dict()
        )
        if not data:
            return None
        return {key: list(messages) for key, messages in data.items()}