"""Client for the Sentry web API: dashboards, code mappings, issue and metric alerts."""

__version__ = "0.1.0"

__all__ = [
    "client",
    "code_mappings",
    "dashboards",
    "datasources",
    "errors",
    "helpers",
    "issue_alerts",
    "metric_alerts",
]