import threading
import time
from urllib.parse import parse_qs, urlsplit

import json
import pytest
import responses

from sentryapi.client import Client, Config
from sentryapi.errors import APIError


@pytest.fixture
def mock():
    with responses.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def client(sleeps):
    with Client("token", user_agent="agent/1.0", sleep=sleeps.append) as c:
        yield c


def test_get_decodes_json_and_sends_headers(mock, client):
    url = client.base_url + "0/organizations/org/"
    mock.add(responses.GET, url, json={"slug": "org"})
    data, meta = client.request("GET", "0/organizations/org/")
    assert data == {"slug": "org"}
    assert meta.status_code == 200
    sent = mock.calls[0].request
    assert sent.headers["Authorization"] == "Bearer token"
    assert sent.headers["User-Agent"] == "agent/1.0"


def test_cursor_from_link_header(mock, client):
    url = client.base_url + "0/things/"
    link = (
        f'<{url}?cursor=a>; rel="previous"; results="false"; cursor="a", '
        f'<{url}?cursor=b>; rel="next"; results="true"; cursor="b"'
    )
    mock.add(responses.GET, url, json=[], headers={"Link": link})
    _, meta = client.request("GET", "0/things/")
    assert meta.cursor == "b"


def test_cursor_empty_when_no_more_results(mock, client):
    url = client.base_url + "0/things/"
    link = f'<{url}?cursor=b>; rel="next"; results="false"; cursor="b"'
    mock.add(responses.GET, url, json=[], headers={"Link": link})
    _, meta = client.request("GET", "0/things/")
    assert meta.cursor == ""


def test_query_params_omit_empty(mock, client):
    url = client.base_url + "0/things/"
    mock.add(responses.GET, url, json=[])
    client.request("GET", "0/things/", params={"cursor": "c1", "integrationId": "", "x": None})
    query = parse_qs(urlsplit(mock.calls[0].request.url).query)
    assert query == {"cursor": ["c1"]}


def test_post_sends_json_body(mock, client):
    url = client.base_url + "0/things/"
    mock.add(responses.POST, url, json={"id": "1"}, status=201)
    body = {"title": "General", "widgets": []}
    data, meta = client.request("POST", "0/things/", body=body)
    assert json.loads(mock.calls[0].request.body) == body
    assert data == {"id": "1"}
    assert meta.status_code == 201


def test_no_content_returns_none(mock, client):
    url = client.base_url + "0/things/1/"
    mock.add(responses.DELETE, url, status=204)
    data, meta = client.request("DELETE", "0/things/1/")
    assert data is None
    assert meta.status_code == 204


def test_error_status_raises_api_error(mock, client):
    url = client.base_url + "0/things/1/"
    mock.add(responses.GET, url, json={"detail": "The requested resource does not exist"}, status=404)
    with pytest.raises(APIError) as info:
        client.request("GET", "0/things/1/")
    assert info.value.status_code == 404
    assert info.value.detail() == "The requested resource does not exist"
    assert info.value.response.status_code == 404


def test_server_error_is_retried(mock, client, sleeps):
    url = client.base_url + "0/things/"
    mock.add(responses.GET, url, status=500)
    mock.add(responses.GET, url, json={"ok": True})
    data, _ = client.request("GET", "0/things/")
    assert data == {"ok": True}
    assert len(mock.calls) == 2
    assert sleeps == [1.0]


def test_retries_exhausted_pass_response_through(mock, client, sleeps):
    url = client.base_url + "0/things/"
    mock.add(responses.GET, url, json={"detail": "down"}, status=503)
    with pytest.raises(APIError) as info:
        client.request("GET", "0/things/")
    assert info.value.status_code == 503
    assert len(mock.calls) == client.retry_max + 1
    assert len(sleeps) == client.retry_max
    assert sleeps == sorted(sleeps)


def test_rate_limit_waits_until_reset(mock, client, sleeps):
    url = client.base_url + "0/things/"
    reset = time.time() + 5
    mock.add(responses.GET, url, status=429, headers={"X-Sentry-Rate-Limit-Reset": str(reset)})
    mock.add(responses.GET, url, json=[])
    data, _ = client.request("GET", "0/things/")
    assert data == []
    assert len(sleeps) == 1
    assert 0 < sleeps[0] <= 5


def test_concurrency_limit_is_respected(mock, client):
    url = client.base_url + "0/things/"
    mock.add(responses.GET, url, json=[], headers={"X-Sentry-Rate-Limit-ConcurrentLimit": "1"})
    client.request("GET", "0/things/")

    state = {"active": 0, "peak": 0}
    lock = threading.Lock()

    def handler(request):
        with lock:
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
        time.sleep(0.02)
        with lock:
            state["active"] -= 1
        return 200, {}, "[]"

    mock.replace(responses.GET, url, body="[]")
    mock.remove(responses.GET, url)
    mock.add_callback(responses.GET, url, callback=handler)
    threads = [threading.Thread(target=client.request, args=("GET", "0/things/")) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert state["peak"] == 1
    assert len(mock.calls) == 5


def test_config_default_base_url():
    client = Config(token="token").client()
    assert client.base_url == Client("token").base_url


def test_config_on_premise_base_url(mock):
    client = Config(token="token", base_url="http://localhost:9000/api").client()
    assert client.base_url == "http://localhost:9000/api/"
    mock.add(responses.GET, "http://localhost:9000/api/0/things/", json=[1])
    data, _ = client.request("GET", "0/things/")
    assert data == [1]


def test_config_invalid_base_url():
    with pytest.raises(ValueError):
        Config(token="token", base_url="not a url").client()