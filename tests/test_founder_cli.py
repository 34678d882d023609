import importlib.util
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

CLI_PATH = Path(__file__).resolve().parents[1] / "examples" / "founder_cli" / "founder.py"


@pytest.fixture(scope="module")
def founder():
    spec = importlib.util.spec_from_file_location("founder", CLI_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _response(status_code: int = 200, payload=None) -> MagicMock:
    response = MagicMock(status_code=status_code)
    response.json.return_value = payload or {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(str(status_code))
    return response


@pytest.fixture
def cli_client(founder):
    with patch.object(
        founder.requests, "post", return_value=_response(payload={"access_token": "tok"})
    ):
        return founder.StartupNationClient("http://api.test/", "ada@x.com", "pw")


PROFILE = {"id": "u1", "username": "ada", "name": "Ada", "bio": None}


def test_login_stores_token(cli_client) -> None:
    assert cli_client.api_url == "http://api.test/v1"
    assert cli_client.headers == {"Authorization": "Bearer tok"}


def test_login_failure(founder) -> None:
    with patch.object(
        founder.requests,
        "post",
        return_value=_response(401, {"detail": "Invalid email or password"}),
    ):
        with pytest.raises(RuntimeError, match="Invalid email or password"):
            founder.StartupNationClient("http://api.test", "ada@x.com", "bad")


def test_update_profile_confirmed(founder, cli_client) -> None:
    stored = {**PROFILE, "bio": "Shipping"}
    with patch.object(founder.requests, "patch", return_value=_response(payload=stored)) as p:
        result = cli_client.update_profile(PROFILE, bio="Shipping", username=None)
    assert result.confirmed is True
    assert result.profile == stored
    assert p.call_args.kwargs["json"] == {"bio": "Shipping"}
    assert p.call_args.args[0] == "http://api.test/v1/users/u1"


def test_update_profile_unreachable_is_not_confirmed(founder, cli_client) -> None:
    with patch.object(
        founder.requests, "patch", side_effect=requests.ConnectionError("refused")
    ):
        result = cli_client.update_profile(PROFILE, bio="Shipping")
    assert result.confirmed is False
    assert result.profile["bio"] == "Shipping"
    assert "refused" in result.error
    # The caller's copy is not modified
    assert PROFILE["bio"] is None


def test_update_profile_rejected_raises(founder, cli_client) -> None:
    with patch.object(founder.requests, "patch", return_value=_response(400)):
        with pytest.raises(requests.HTTPError):
            cli_client.update_profile(PROFILE, username="taken")


def test_feed_params(founder, cli_client) -> None:
    page = {"posts": [], "pagination": {"page": 2, "limit": 20, "total": 0, "pages": 0}}
    with patch.object(founder.requests, "get", return_value=_response(payload=page)) as g:
        assert cli_client.get_feed("STORY", page=2) == page
    assert g.call_args.kwargs["params"] == {"page": "2", "type": "STORY"}


def test_open_direct_chat(founder, cli_client) -> None:
    with patch.object(
        founder.requests, "post", return_value=_response(payload={"id": "room-1"})
    ) as p:
        room = cli_client.open_direct_chat("u2")
    assert room["id"] == "room-1"
    assert p.call_args.kwargs["json"] == {"type": "DIRECT", "user_ids": ["u2"]}
