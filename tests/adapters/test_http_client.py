from unittest.mock import MagicMock

import pytest
import requests

from readiness.adapters.http import HttpClient
from readiness.engine.errors import AdapterError, AdapterTimeout, AuthFailure, NotFound, RateLimited


def _response(status=200, payload=None, text=""):
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


def _client(response=None, error=None, **kwargs):
    session = requests.Session()
    session.get = MagicMock(return_value=response, side_effect=error)
    return HttpClient("https://ci.example.com/", "jenkins", session=session, **kwargs), session


def test_returns_json_body():
    client, session = _client(_response(payload={"builds": []}))
    assert client.get_json("/job/x/api/json", params={"tree": "builds"}) == {"builds": []}
    session.get.assert_called_once_with(
        "https://ci.example.com/job/x/api/json", params={"tree": "builds"}, timeout=30.0
    )


@pytest.mark.parametrize(
    "status, error",
    [(404, NotFound), (401, AuthFailure), (403, AuthFailure), (429, RateLimited), (500, AdapterError)],
)
def test_status_mapping(status, error):
    client, _ = _client(_response(status=status, text="nope"))
    with pytest.raises(error) as excinfo:
        client.get_json("/x")
    assert excinfo.value.source_system == "jenkins"


def test_timeout_maps_to_adapter_timeout():
    client, _ = _client(error=requests.Timeout("read timed out"))
    with pytest.raises(AdapterTimeout):
        client.get_json("/x")


def test_connection_error_maps_to_adapter_error():
    client, _ = _client(error=requests.ConnectionError("refused"))
    with pytest.raises(AdapterError) as excinfo:
        client.get_json("/x")
    assert type(excinfo.value) is AdapterError


def test_non_json_body():
    client, _ = _client(_response(payload=ValueError("no json")))
    with pytest.raises(AdapterError, match="non-JSON"):
        client.get_json("/x")


def test_bearer_token_header():
    client, session = _client(_response(payload={}), token="s3cret")
    assert session.headers["Authorization"] == "Bearer s3cret"
    assert session.auth is None


def test_basic_auth_when_user_given():
    client, session = _client(_response(payload={}), token="s3cret", user="ci-bot")
    assert session.auth == ("ci-bot", "s3cret")
    assert "Authorization" not in session.headers


def test_tls_verification_flag():
    _, session = _client(_response(payload={}), verify_tls=False)
    assert session.verify is False


def test_base_url_required():
    with pytest.raises(ValueError):
        HttpClient("", "argocd")


def test_url_joins_paths():
    client, _ = _client(_response(payload={}))
    assert client.url("/applications/payments") == "https://ci.example.com/applications/payments"
