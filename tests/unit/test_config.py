"""Tests for notion2docs.config.Notion2DocsConfig."""

from __future__ import annotations

import pytest

from notion2docs.config import ENV_VARS, Notion2DocsConfig
from notion2docs.errors import ErrorCode, Notion2DocsConfigError


class TestDefaults:
    def test_defaults(self):
        config = Notion2DocsConfig()
        assert config.submit_mode == "batch"
        assert config.notion_version == "2022-06-28"
        assert config.fetch_child_databases is False
        assert config.store_path == ".notion2docs.json"
        assert config.max_fetch_depth is None


class TestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"submit_mode": "stream"},
            {"retry_max_attempts": -1},
            {"retry_base_delay": -0.1},
            {"rate_limit_rps": 0},
            {"docs_rate_limit_rps": 0},
            {"timeout_seconds": 0},
            {"max_fetch_depth": -2},
            {"quote_indent_pt": -1},
        ],
    )
    def test_rejects_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            Notion2DocsConfig(**overrides)

    def test_insecure_remote_url_rejected(self):
        with pytest.raises(ValueError, match="insecure HTTP"):
            Notion2DocsConfig(docs_base_url="http://docs.example.com/v1")

    def test_http_localhost_allowed(self):
        config = Notion2DocsConfig(notion_base_url="http://localhost:8080/v1")
        assert config.notion_base_url.startswith("http://localhost")


class TestFromEnv:
    def test_reads_variables(self):
        env = {
            "NOTION_API_KEY": "secret_x",
            "NOTION_DATABASE_ID": "db1",
            "NOTION_PAGE_ID": "pg1",
            "GOOGLE_CLIENT_ID": "cid",
            "GOOGLE_CLIENT_SECRET": "csecret",
            "GOOGLE_DOC_ID": "doc1",
            "FETCH_CHILD_DATABASES": "true",
            "NOTION2DOCS_SUBMIT_MODE": "eager",
        }
        config = Notion2DocsConfig.from_env(env)
        assert config.notion_token == "secret_x"
        assert config.notion_database_id == "db1"
        assert config.notion_page_id == "pg1"
        assert config.google_doc_id == "doc1"
        assert config.fetch_child_databases is True
        assert config.submit_mode == "eager"

    @pytest.mark.parametrize("raw, expected", [("1", True), ("YES", True), ("false", False), ("0", False)])
    def test_boolean_parsing(self, raw, expected):
        config = Notion2DocsConfig.from_env({"FETCH_CHILD_DATABASES": raw})
        assert config.fetch_child_databases is expected

    def test_empty_values_ignored(self):
        config = Notion2DocsConfig.from_env({"GOOGLE_DOC_ID": ""})
        assert config.google_doc_id == ""

    def test_overrides_win_and_none_is_skipped(self):
        env = {"GOOGLE_DOC_ID": "from-env", "NOTION_DATABASE_ID": "db-env"}
        config = Notion2DocsConfig.from_env(env, google_doc_id="explicit", notion_database_id=None)
        assert config.google_doc_id == "explicit"
        assert config.notion_database_id == "db-env"

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("NOTION_PAGE_ID", "from-os")
        assert Notion2DocsConfig.from_env().notion_page_id == "from-os"

    def test_every_variable_maps_to_a_field(self):
        config = Notion2DocsConfig()
        for field_name in ENV_VARS:
            assert hasattr(config, field_name)


class TestValidateForTransfer:
    def test_reports_all_missing(self):
        with pytest.raises(Notion2DocsConfigError) as exc_info:
            Notion2DocsConfig(google_client_id="cid").validate_for_transfer()
        err = exc_info.value
        assert err.code == ErrorCode.CONFIG_ERROR
        assert err.context["missing"] == ["NOTION_API_KEY", "GOOGLE_DOC_ID", "GOOGLE_CLIENT_SECRET"]

    def test_complete_config_passes(self):
        Notion2DocsConfig(
            notion_token="t",
            google_doc_id="d",
            google_client_id="c",
            google_client_secret="s",
        ).validate_for_transfer()


class TestRepr:
    def test_secrets_masked(self):
        text = repr(Notion2DocsConfig(notion_token="secret_abcdef1234", google_client_secret="GOCSPX-zzzz9876"))
        assert "secret_abcdef1234" not in text
        assert "GOCSPX-zzzz9876" not in text
        assert "notion_token='...1234'" in text
        assert "google_client_secret='...9876'" in text

    def test_short_secret(self):
        assert "notion_token='****'" in repr(Notion2DocsConfig(notion_token="ab"))
