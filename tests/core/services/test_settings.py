import pytest

from mimequery.core.domain.entities import ErrorPolicy
from mimequery.core.services.error_codes import ErrorCode, MimeQueryError
from mimequery.core.services.settings import config_file_path, load_settings, parse_error_policy
from mimequery.core.services.xdg_environment import resolve_environment


def _write_config(xdg, text):
    path = xdg.config_home / "mimequery" / "config.yaml"
    path.parent.mkdir(parents=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_default_policy(xdg):
    settings = load_settings(resolve_environment(xdg.env()), process_env={})
    assert settings.error_policy is ErrorPolicy.BEST_EFFORT
    assert settings.source == "default"


def test_config_file_path_follows_config_home(xdg):
    env = resolve_environment(xdg.env())
    assert config_file_path(env) == xdg.config_home / "mimequery" / "config.yaml"
    assert config_file_path(resolve_environment({})) is None


def test_config_file(xdg):
    path = _write_config(xdg, "error_policy: fail-fast\n")
    settings = load_settings(resolve_environment(xdg.env()), process_env={})
    assert settings.error_policy is ErrorPolicy.FAIL_FAST
    assert settings.source == str(path)


def test_empty_config_file(xdg):
    _write_config(xdg, "")
    settings = load_settings(resolve_environment(xdg.env()), process_env={})
    assert settings.error_policy is ErrorPolicy.BEST_EFFORT


def test_env_overrides_config(xdg):
    _write_config(xdg, "error_policy: fail-fast\n")
    settings = load_settings(
        resolve_environment(xdg.env()),
        process_env={"MIMEQUERY_ERROR_POLICY": "best_effort"},
    )
    assert settings.error_policy is ErrorPolicy.BEST_EFFORT
    assert settings.source == "env"


def test_cli_override_wins(xdg):
    settings = load_settings(
        resolve_environment(xdg.env()),
        process_env={"MIMEQUERY_ERROR_POLICY": "best-effort"},
        override="fail-fast",
    )
    assert settings.error_policy is ErrorPolicy.FAIL_FAST
    assert settings.source == "cli"


def test_invalid_policy_value(xdg):
    _write_config(xdg, "error_policy: sometimes\n")
    with pytest.raises(MimeQueryError) as exc_info:
        load_settings(resolve_environment(xdg.env()), process_env={})
    assert exc_info.value.code == ErrorCode.CONFIG_INVALID


def test_malformed_yaml(xdg):
    _write_config(xdg, "error_policy: [unterminated\n")
    with pytest.raises(MimeQueryError) as exc_info:
        load_settings(resolve_environment(xdg.env()), process_env={})
    assert exc_info.value.code == ErrorCode.CONFIG_INVALID


def test_non_mapping_yaml(xdg):
    _write_config(xdg, "- fail-fast\n")
    with pytest.raises(MimeQueryError):
        load_settings(resolve_environment(xdg.env()), process_env={})


def test_parse_error_policy_normalizes():
    assert parse_error_policy(" FAIL_FAST ", "test") is ErrorPolicy.FAIL_FAST
    assert parse_error_policy(ErrorPolicy.BEST_EFFORT, "test") is ErrorPolicy.BEST_EFFORT
