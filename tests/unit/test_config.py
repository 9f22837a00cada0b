"""
Unit tests for Settings loading.

Run with: pytest tests/unit/test_config.py -v
"""

import pytest

from jobsweep.client import UsageError
from jobsweep.core.config import Settings, parse_extra_headers, read_env_config


class TestEnvironmentSettings:
    """Test suite for environment variable loading"""

    def test_defaults(self):
        settings = Settings.load(environ={"JOBSWEEP_API_KEY": "k"})

        assert settings.api_key == "k"
        assert settings.base_url == "https://trocco.io/api/"
        assert settings.timeout == 45.0
        assert settings.auth_header == "Authorization"
        assert settings.auth_scheme == "Token"
        assert settings.extra_headers == {}

    def test_token_fallback(self):
        settings = Settings.from_env({"JOBSWEEP_TOKEN": "  tok  "})

        assert settings.api_key == "tok"

    def test_api_key_preferred_over_token(self):
        assert Settings.from_env({"JOBSWEEP_API_KEY": "a", "JOBSWEEP_TOKEN": "b"}).api_key == "a"

    def test_all_fields(self):
        settings = Settings.from_env({
            "JOBSWEEP_API_KEY": "k",
            "JOBSWEEP_BASE_URL": "https://jobs.example.test/api",
            "JOBSWEEP_TIMEOUT_MS": "1500",
            "JOBSWEEP_AUTH_HEADER": "X-Api-Key",
            "JOBSWEEP_AUTH_SCHEME": "",
            "JOBSWEEP_EXTRA_HEADERS": '{"X-Team": "data", "X-Retry": 0}',
        })

        assert settings.base_url == "https://jobs.example.test/api/"
        assert settings.timeout == 1.5
        assert settings.auth_header == "X-Api-Key"
        assert settings.auth_scheme == ""
        assert settings.extra_headers == {"X-Team": "data", "X-Retry": "0"}

    def test_invalid_timeout_ignored(self):
        assert "timeout" not in read_env_config({"JOBSWEEP_TIMEOUT_MS": "soon"})

    def test_missing_key(self):
        with pytest.raises(UsageError, match="JOBSWEEP_API_KEY"):
            Settings.load(environ={})

        with pytest.raises(UsageError):
            Settings.from_env({"JOBSWEEP_API_KEY": "   "})

    def test_invalid_extra_headers(self):
        assert parse_extra_headers("not json") == {}
        assert parse_extra_headers('["a", "b"]') == {}
        assert parse_extra_headers("") == {}
        assert parse_extra_headers(None) == {}


class TestYamlSettings:
    """Test suite for YAML config files"""

    def test_yaml_overlaid_by_environment(self, tmp_path):
        config_file = tmp_path / "jobsweep.yaml"
        config_file.write_text(
            "api_key: from-file\n"
            "base_url: https://file.example.test/api/\n"
            "timeout: 10\n"
            "unknown_key: ignored\n",
            encoding="utf-8",
        )

        settings = Settings.load(config_file, environ={"JOBSWEEP_TIMEOUT_MS": "2000"})

        assert settings.api_key == "from-file"
        assert settings.base_url == "https://file.example.test/api/"
        assert settings.timeout == 2.0

    def test_config_path_from_environment(self, tmp_path):
        config_file = tmp_path / "jobsweep.yaml"
        config_file.write_text("api_key: k\n", encoding="utf-8")

        settings = Settings.load(environ={"JOBSWEEP_CONFIG": str(config_file)})

        assert settings.api_key == "k"

    def test_missing_file(self, tmp_path):
        with pytest.raises(UsageError, match="not found"):
            Settings.load(tmp_path / "absent.yaml", environ={})

    def test_non_mapping_file(self, tmp_path):
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(UsageError, match="mapping"):
            Settings.load(config_file, environ={})


class TestCreateClient:
    """Test suite for Settings.create_client"""

    def test_client_uses_settings(self):
        settings = Settings(
            api_key="k",
            base_url="https://jobs.example.test/api",
            timeout=3,
            extra_headers={"X-Team": "data"},
        )

        client = settings.create_client(transport=lambda *args, **kwargs: None)

        assert client.base_url == "https://jobs.example.test/api/"
        assert client.timeout == 3
        assert client.build_headers()["Authorization"] == "Token k"
        assert client.build_headers()["X-Team"] == "data"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
