# sentryapi

A small, synchronous Python client for the Sentry web API. It covers:

- dashboards and dashboard widget validation (`sentryapi.dashboards`)
- organization code mappings (`sentryapi.code_mappings`)
- issue alerts, that is project rules (`sentryapi.issue_alerts`)
- metric alerts, that is alert rules (`sentryapi.metric_alerts`)
- a flat attribute view of an issue alert (`sentryapi.datasources`)
- helpers for composite resource IDs and JSON values (`sentryapi.helpers`)

## Installation

```
pip install sentryapi
```

The `test` extra installs what the test suite needs (pytest and responses).

## Connecting

```python
from sentryapi.client import Config

config = Config(token="token", user_agent="my-tool/1.0")
client = config.client()
```

Leave `base_url` empty to talk to sentry.io, or give the address of a
self-hosted instance; an address without a scheme and host raises
`ValueError`. A `Client` can also be built directly and used as a context
manager, which closes it on exit; otherwise call `client.close()`.

`Client.request(method, path, body, params)` sends one request and returns
the decoded JSON body together with a `Response` holding the status code,
the headers and the cursor of the next page (`""` when there is none).

Requests that end in a connection failure, a 429 or a 5xx status (except
501) are retried up to four times. After a 429 the client waits until the
reset time Sentry reports, or for the `Retry-After` value; otherwise it backs
off exponentially from one second up to thirty. Once the server announces a
concurrency limit, the client keeps the number of requests in flight under
that limit.

## Working with resources

Each resource area has a service class that wraps the client:

```python
from sentryapi.dashboards import DashboardsService
from sentryapi.issue_alerts import IssueAlertsService

dashboards = DashboardsService(client)
page, cursor = dashboards.list("my-org")
for dashboard in page:
    print(dashboard.id, dashboard.title)
while cursor:
    page, cursor = dashboards.list("my-org", cursor)

alerts = IssueAlertsService(client)
alert = alerts.get("my-org", "my-project", "12345")
print(alert.name, alert.frequency)
```

The `list` methods return one page and the next cursor. Models such as
`Dashboard`, `IssueAlert`, `MetricAlert` and `OrganizationCodeMapping`
convert from the API's JSON with `from_dict`; the models that are sent to
the server convert back with `to_dict`, leaving out unset fields.

`DashboardWidgetsService.validate` returns the errors by field, or `None`
when the widget is valid.

Creating an issue alert, or creating or updating a metric alert, can start
an asynchronous task on the server instead of returning the rule. The service
then polls the task endpoint every `poll_interval` seconds (five by default),
at most five times, and returns the finished rule. It raises `TaskError` when
the task id is missing, the task cannot be found, the task fails, or it is
still running after the last poll.

`read_issue_alert_data(service, organization, project, internal_id)` fetches
an issue alert and returns its attributes as a flat dictionary, with `id`
set to the `organization/project/alert` composite ID.

## Errors

Every failure raises a subclass of `sentryapi.errors.SentryError`. An error
response from the server becomes an `APIError` carrying `status_code` and
the `Response`. Its `detail()` returns the server's `detail` message when
that is the only field, and a rendering of the whole body otherwise.

## Helpers

```python
from sentryapi.helpers import build_three_part_id, split_alert_id

build_three_part_id("my-org", "my-project", "42")   # "my-org/my-project/42"
split_alert_id("my-org/my-project/42")              # ("my-org", "my-project", "42")
```

A malformed ID raises `ValueError`, and the message states the expected form.
`import_organization_and_id` and `import_organization_project_and_id` parse
IDs of the form `organization/id` and `organization/project/id`.
`equivalent_json` compares two JSON documents by value, `follow_shape` trims
a value down to the keys and items of a given shape, and `check_client_get`
turns a 404 `APIError` into `False` and re-raises any other error.

## What it does not do

The package is a library only: it has no command-line tool. It does not
cover organizations, teams, projects, client keys or integrations, and it
keeps no state of its own between calls.