import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from slot_engine import cli


def response(data, ok=True):
    mock = MagicMock()
    mock.ok = ok
    mock.json.return_value = data
    return mock


@patch('slot_engine.cli.requests')
def test_get_prints_settings(mock_requests, capsys):
    mock_requests.get.return_value = response({"outcomeOverride": "RNG", "updatedAt": 1})

    assert cli.main(["--url", "http://engine.test/", "get"]) == 0

    mock_requests.get.assert_called_once_with("http://engine.test/game-settings", timeout=5.0)
    assert json.loads(capsys.readouterr().out)["outcomeOverride"] == "RNG"


@patch('slot_engine.cli.requests')
def test_set_posts_override(mock_requests):
    mock_requests.post.return_value = response({"success": True, "outcomeOverride": "WIN"})

    assert cli.main(["--url", "http://engine.test", "set", "WIN"]) == 0

    mock_requests.post.assert_called_once_with(
        "http://engine.test/admin-settings", json={"outcomeOverride": "WIN"}, timeout=5.0
    )


@patch('slot_engine.cli.requests')
def test_set_failure_exit_code(mock_requests):
    mock_requests.post.return_value = response({"error": "Internal server error"}, ok=False)
    assert cli.main(["set", "LOSS"]) == 1


def test_set_rejects_unknown_value():
    with pytest.raises(SystemExit):
        cli.main(["set", "JACKPOT"])


@patch('slot_engine.cli.requests.get', side_effect=requests.ConnectionError("refused"))
def test_unreachable_server(mock_get, capsys):
    assert cli.main(["get"]) == 1
    assert "Request failed" in capsys.readouterr().err
