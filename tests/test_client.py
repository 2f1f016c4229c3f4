from unittest.mock import MagicMock

import pytest
import requests

from tokenflow.client import SteppingClient
from tokenflow.errors import SteppingServiceError
from tokenflow.region import TaskRegion


def _response(ok=True, status=200, json_data=None, text=""):
    r = MagicMock()
    r.ok = ok
    r.status_code = status
    r.text = text
    r.json.return_value = json_data
    return r


@pytest.fixture
def tree():
    return TaskRegion(id=1, label="A")


def test_execute_step_posts_payload(tree):
    http = MagicMock()
    http.post.return_value = _response(json_data={"derived_state": {"clock": 1}})
    client = SteppingClient(url="http://backend/execute", timeout_s=5, session=http)

    result = client.execute_step(tree, {"execution_trace": ["x"]}, preview=True)

    assert result == {"derived_state": {"clock": 1}}
    args, kwargs = http.post.call_args
    assert args == ("http://backend/execute",)
    assert kwargs["timeout"] == 5
    assert kwargs["json"]["execution_trace"] == ["x"]
    assert kwargs["json"]["derived_state"] is None
    assert kwargs["json"]["preview"] is True


def test_error_status_is_raised_with_code(tree):
    http = MagicMock()
    http.post.return_value = _response(ok=False, status=500, text="boom")
    client = SteppingClient(url="http://backend/execute", session=http)

    with pytest.raises(SteppingServiceError) as exc:
        client.execute_step(tree)
    assert exc.value.status_code == 500
    assert "Backend Error 500: boom" in str(exc.value)


def test_transport_errors_are_wrapped(tree):
    http = MagicMock()
    http.post.side_effect = requests.ConnectionError("refused")
    client = SteppingClient(url="http://backend/execute", session=http)

    with pytest.raises(SteppingServiceError) as exc:
        client.execute_step(tree)
    assert exc.value.status_code is None


def test_invalid_json_is_an_error(tree):
    http = MagicMock()
    response = _response()
    response.json.side_effect = ValueError("no json")
    http.post.return_value = response
    client = SteppingClient(url="http://backend/execute", session=http)

    with pytest.raises(SteppingServiceError):
        client.execute_step(tree)


def test_url_and_timeout_from_environment(monkeypatch):
    monkeypatch.setenv("TOKENFLOW_BACKEND_URL", "http://elsewhere:9000/step")
    monkeypatch.setenv("TOKENFLOW_TIMEOUT_S", "2.5")
    client = SteppingClient(session=MagicMock())
    assert client.url == "http://elsewhere:9000/step"
    assert client.timeout_s == 2.5


def test_client_is_exported_from_package():
    import tokenflow

    assert tokenflow.SteppingClient is SteppingClient
