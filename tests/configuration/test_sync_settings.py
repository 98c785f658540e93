"""Tests for sync settings validation and loading."""

from pathlib import Path

import json
import pytest
import yaml

from assetsync.configuration.settings import (
    FileSettingsProvider,
    SyncSettings,
    load_settings,
    save_settings,
)
from assetsync.errors import ConfigurationError


def test_languages_are_normalized_from_comma_string() -> None:
    settings = SyncSettings(import_languages="EN, de,,en ")
    assert settings.import_languages == ["en", "de"]


def test_urls_are_built_from_tenant() -> None:
    settings = SyncSettings(tenant_id="acme")
    assert settings.catalog_base_url == "https://acme.clapi.smint.io/consumer/v1"
    assert settings.token_url == "https://acme.smint.io/connect/token"


@pytest.mark.parametrize(
    ("values", "field", "message"),
    [
        ({"import_languages": ["en"]}, "tenant_id", "The tenant ID is missing"),
        ({"tenant_id": "acme"}, "import_languages", "The import languages are missing"),
    ],
)
def test_validate_for_sync_names_missing_field(values, field, message) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        SyncSettings(**values).validate_for_sync()

    assert exc_info.value.field == field
    assert exc_info.value.message == message


def test_validate_for_push_requires_channel() -> None:
    settings = SyncSettings(tenant_id="acme", import_languages=["en"])
    with pytest.raises(ConfigurationError) as exc_info:
        settings.validate_for_push()
    assert exc_info.value.field == "channel_id"

    SyncSettings(tenant_id="acme", import_languages=["en"], channel_id=12).validate_for_push()


def test_validate_for_authenticator_checks_each_field() -> None:
    base = dict(
        tenant_id="acme",
        client_id="id",
        client_secret="secret",
        redirect_uri="https://localhost/cb",
    )
    SyncSettings(**base).validate_for_authenticator()

    for missing in ("client_id", "client_secret", "redirect_uri"):
        values = dict(base)
        values.pop(missing)
        with pytest.raises(ConfigurationError) as exc_info:
            SyncSettings(**values).validate_for_authenticator()
        assert exc_info.value.field == missing


def test_missing_file_uses_defaults(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "absent.yaml")
    assert settings.tenant_id is None
    assert settings.sync_interval_minutes == 30
    assert settings.page_size == 10


def test_load_yaml_with_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text(
        yaml.safe_dump(
            {"tenant_id": "acme", "import_languages": ["en"], "retry": {"max_attempts": 3}}
        )
    )
    monkeypatch.setenv("ASSETSYNC_CHANNEL_ID", "99")
    monkeypatch.setenv("ASSETSYNC_IMPORT_LANGUAGES", "de,fr")

    settings = load_settings(path)

    assert settings.tenant_id == "acme"
    assert settings.channel_id == 99
    assert settings.import_languages == ["de", "fr"]
    assert settings.retry.max_attempts == 3


def test_load_json(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"tenant_id": "acme", "page_size": 25}))

    assert FileSettingsProvider(path).get_settings().page_size == 25


def test_invalid_values_raise_configuration_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("page_size: 0\n")
    with pytest.raises(ConfigurationError) as exc_info:
        load_settings(path)
    assert "page_size" in exc_info.value.message

    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigurationError):
        load_settings(path)

    path.write_text("tenant_id: acme\n")
    monkeypatch.setenv("ASSETSYNC_CHANNEL_ID", "not-a-number")
    with pytest.raises(ConfigurationError) as exc_info:
        load_settings(path)
    assert exc_info.value.field == "channel_id"


def test_save_never_writes_client_secret(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    save_settings(SyncSettings(tenant_id="acme", client_secret="hidden"), path)

    text = path.read_text()
    assert "hidden" not in text
    assert "client_secret" not in text
    assert load_settings(path).tenant_id == "acme"
