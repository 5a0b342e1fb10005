"""
Tests for utils/config.py

Covers the credential resolver's source priority, malformed input handling,
app id / token resolution, and AppConfig environment parsing.
"""
import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.config import (
    DEFAULT_APP_ID,
    AppConfig,
    FirebaseConfig,
    detect_config_sources,
    resolve_app_id,
    resolve_firebase_config,
    resolve_initial_auth_token,
)


def _blob(api_key, project="proj"):
    return json.dumps({"apiKey": api_key, "projectId": project})


class TestFirebaseConfig:
    def test_from_blob_maps_camel_case(self):
        cfg = FirebaseConfig.from_blob({
            "apiKey": "k", "authDomain": "p.firebaseapp.com",
            "projectId": "p", "appId": "1:2:web:3",
        })
        assert cfg.api_key == "k"
        assert cfg.project_id == "p"
        assert cfg.app_id == "1:2:web:3"

    def test_missing_api_key_is_none(self):
        assert FirebaseConfig.from_blob({"projectId": "p"}) is None

    def test_non_mapping_is_none(self):
        assert FirebaseConfig.from_blob(["apiKey"]) is None

    def test_project_id_from_auth_domain(self):
        cfg = FirebaseConfig.from_blob({"apiKey": "k", "authDomain": "myproj.firebaseapp.com"})
        assert cfg.project_id == "myproj"


class TestResolveFirebaseConfig:
    def test_no_sources(self):
        assert resolve_firebase_config(environ={}) is None

    def test_injected_wins(self):
        env = {"__firebase_config": _blob("editor"), "VITE_FIREBASE_CONFIG": _blob("build")}
        cfg = resolve_firebase_config({"apiKey": "direct"}, environ=env)
        assert cfg.api_key == "direct"

    def test_editor_variable_before_build_env(self):
        env = {"__firebase_config": _blob("editor"), "VITE_FIREBASE_CONFIG": _blob("build"),
               "FIREBASE_CONFIG": _blob("global")}
        assert resolve_firebase_config(environ=env).api_key == "editor"

    def test_build_env_before_global(self):
        env = {"VITE_FIREBASE_CONFIG": _blob("build"), "FIREBASE_CONFIG": _blob("global")}
        assert resolve_firebase_config(environ=env).api_key == "build"

    def test_global_variable(self):
        assert resolve_firebase_config(environ={"FIREBASE_CONFIG": _blob("global")}).api_key == "global"

    def test_empty_values_are_skipped(self):
        env = {"__firebase_config": "", "VITE_FIREBASE_CONFIG": _blob("build")}
        assert resolve_firebase_config(environ=env).api_key == "build"

    def test_config_file(self, tmp_path):
        path = tmp_path / "firebase.json"
        path.write_text(_blob("from-file"), encoding="utf-8")
        cfg = resolve_firebase_config(environ={"FIREBASE_CONFIG_FILE": str(path)})
        assert cfg.api_key == "from-file"

    def test_missing_file_is_none(self, tmp_path):
        env = {"FIREBASE_CONFIG_FILE": str(tmp_path / "nope.json")}
        assert resolve_firebase_config(environ=env) is None

    def test_malformed_json_is_none_and_logged(self, caplog):
        env = {"VITE_FIREBASE_CONFIG": "{not json", "FIREBASE_CONFIG": _blob("global")}
        with caplog.at_level("ERROR", logger="budget_dashboard.config"):
            assert resolve_firebase_config(environ=env) is None
        assert "Error interpretando JSON" in caplog.text

    def test_blob_without_api_key_is_none(self):
        env = {"FIREBASE_CONFIG": json.dumps({"projectId": "p"})}
        assert resolve_firebase_config(environ=env) is None


class TestDetectSources:
    def test_reports_each_source(self):
        env = {"VITE_FIREBASE_CONFIG": "x", "FIREBASE_CONFIG_FILE": "/tmp/f.json"}
        assert detect_config_sources(env) == {
            "__firebase_config": False,
            "VITE_FIREBASE_CONFIG": True,
            "FIREBASE_CONFIG": True,
        }


class TestAppIdAndToken:
    def test_default_app_id(self):
        assert resolve_app_id({}) == DEFAULT_APP_ID

    def test_editor_app_id_first(self):
        assert resolve_app_id({"__app_id": "editor", "APP_ID": "env"}) == "editor"

    def test_env_app_id(self):
        assert resolve_app_id({"APP_ID": "env"}) == "env"

    def test_token_absent(self):
        assert resolve_initial_auth_token({}) is None
        assert resolve_initial_auth_token({"INITIAL_AUTH_TOKEN": ""}) is None

    def test_token_sources(self):
        assert resolve_initial_auth_token({"INITIAL_AUTH_TOKEN": "t"}) == "t"
        assert resolve_initial_auth_token(
            {"__initial_auth_token": "a", "INITIAL_AUTH_TOKEN": "b"}) == "a"


class TestAppConfig:
    def test_defaults(self, monkeypatch):
        for var in ("APP_TOP_N", "APP_COLLECTION_LAYOUT", "APP_CORS_ORIGINS",
                    "APP_CONFIG_GRACE_SECONDS", "APP_LOG_FORMAT"):
            monkeypatch.delenv(var, raising=False)
        cfg = AppConfig.from_env()
        assert cfg.top_n == 7
        assert cfg.collection_layout == "artifacts"
        assert cfg.collection_name == "presupuesto_2025"
        assert cfg.cors_origins == ["*"]
        assert cfg.config_grace_seconds == 1.5

    def test_cors_origins_split(self, monkeypatch):
        monkeypatch.setenv("APP_CORS_ORIGINS", "http://a.test, http://b.test,")
        assert AppConfig().cors_origins == ["http://a.test", "http://b.test"]

    def test_flat_layout(self, monkeypatch):
        monkeypatch.setenv("APP_COLLECTION_LAYOUT", "flat")
        assert AppConfig().collection_layout == "flat"

    @pytest.mark.parametrize("var,value", [
        ("APP_COLLECTION_LAYOUT", "nested"),
        ("APP_TOP_N", "0"),
        ("APP_TOP_N", "51"),
        ("APP_CONFIG_GRACE_SECONDS", "-1"),
        ("APP_LOG_FORMAT", "xml"),
    ])
    def test_invalid_values_raise(self, monkeypatch, var, value):
        monkeypatch.setenv(var, value)
        with pytest.raises(ValueError):
            AppConfig()

    def test_to_dict_round_trip(self, monkeypatch):
        monkeypatch.setenv("APP_TOP_N", "5")
        cfg = AppConfig()
        assert cfg.to_dict()["top_n"] == 5
