import pytest

from sentryapi.errors import APIError, SentryError


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('{"detail": "description"}', "sentry: description"),
        (
            '{"detail": "description", "other": "field"}',
            "sentry: map[detail:description other:field]",
        ),
        ('"jsonstring"', "sentry: jsonstring"),
    ],
    ids=["detail", "detail+others", "jsonstring"],
)
def test_api_error_messages(raw, expected):
    assert str(APIError.from_json(raw)) == expected


def test_from_json_accepts_bytes():
    error = APIError.from_json(b'{"detail": "description"}')
    assert error.detail() == "description"


def test_invalid_json_kept_as_text():
    error = APIError.from_json("<html>oops</html>")
    assert error.payload == "<html>oops</html>"
    assert str(error) == "sentry: <html>oops</html>"


def test_non_string_detail_is_formatted_as_map():
    error = APIError.from_json('{"detail": 5}')
    assert error.detail() == "map[detail:5]"


def test_is_empty():
    assert APIError().is_empty() is True
    assert APIError.from_json('{"detail": "x"}').is_empty() is False


def test_status_code_carried():
    error = APIError({"detail": "missing"}, status_code=404)
    assert error.status_code == 404
    assert error.detail() == "missing"


def test_api_error_is_a_sentry_error_with_its_detail():
    error = APIError.from_json('{"detail": "gone"}')
    assert isinstance(error, SentryError)
    assert error.detail() == "gone"
    assert str(error) == "sentry: gone"
    assert error.is_empty() is False