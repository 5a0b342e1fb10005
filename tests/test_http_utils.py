"""
Tests for HTTP utilities -- utils/http.py

Tests RetryStrategy, SessionManager and the JSON/form POST helpers without
requiring actual network calls.
"""
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.http import RetryStrategy, SessionManager, post_form, post_json


# ── RetryStrategy tests ──────────────────────────────────────────────────────

class TestRetryStrategy:
    def test_defaults(self):
        rs = RetryStrategy()
        assert rs.max_retries == 3
        assert rs.backoff_factor == 0.5
        assert 429 in rs.status_forcelist
        assert 503 in rs.status_forcelist
        assert 500 not in rs.status_forcelist

    def test_custom_params(self):
        rs = RetryStrategy(max_retries=5, backoff_factor=1.0,
                           status_forcelist=[500, 502])
        assert rs.max_retries == 5
        assert rs.backoff_factor == 1.0
        assert rs.status_forcelist == [500, 502]

    def test_get_retry_object(self):
        retry = RetryStrategy(max_retries=4, backoff_factor=3.0).get_retry_object()
        assert retry.total == 4
        assert retry.backoff_factor == 3.0
        assert retry.raise_on_status is False

    def test_post_is_retried(self):
        allowed = RetryStrategy().get_retry_object().allowed_methods
        assert "POST" in allowed
        assert "GET" in allowed


# ── SessionManager tests ─────────────────────────────────────────────────────

class TestSessionManager:
    def test_creates_session(self):
        sm = SessionManager()
        assert isinstance(sm.session, requests.Session)
        sm.close()

    def test_session_cached(self):
        sm = SessionManager()
        assert sm.session is sm.session
        sm.close()

    def test_close_resets_session(self):
        sm = SessionManager()
        first = sm.session
        sm.close()
        assert sm.session is not first
        sm.close()

    def test_adapters_mounted(self):
        sm = SessionManager(retry_strategy=RetryStrategy(max_retries=2))
        adapter = sm.session.get_adapter("https://identitytoolkit.googleapis.com")
        assert adapter.max_retries.total == 2
        sm.close()

    def test_context_manager(self):
        with SessionManager() as sm:
            _ = sm.session
        assert sm._session is None


# ── POST helpers ─────────────────────────────────────────────────────────────

def _session_returning(status, body=None, json_error=False):
    resp = MagicMock()
    resp.status_code = status
    if json_error:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = body
    session = MagicMock()
    session.post.return_value = resp
    return session


class TestPostJson:
    def test_returns_status_and_body(self):
        session = _session_returning(200, {"idToken": "x"})
        status, body = post_json(session, "https://example.test", {"a": 1},
                                 params={"key": "k"}, timeout=3)
        assert (status, body) == (200, {"idToken": "x"})
        session.post.assert_called_once_with(
            "https://example.test", json={"a": 1}, params={"key": "k"}, timeout=3)

    def test_non_json_body_is_empty_dict(self):
        status, body = post_json(_session_returning(502, json_error=True), "u", {})
        assert status == 502
        assert body == {}

    def test_non_object_body_is_empty_dict(self):
        _, body = post_json(_session_returning(200, ["list"]), "u", {})
        assert body == {}

    def test_transport_errors_propagate(self):
        session = MagicMock()
        session.post.side_effect = requests.Timeout("slow")
        with pytest.raises(requests.Timeout):
            post_json(session, "u", {})


class TestPostForm:
    def test_sends_form_data(self):
        session = _session_returning(200, {"id_token": "y"})
        status, body = post_form(session, "u", {"grant_type": "refresh_token"})
        assert body["id_token"] == "y"
        _, kwargs = session.post.call_args
        assert kwargs["data"] == {"grant_type": "refresh_token"}
