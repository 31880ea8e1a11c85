#!/usr/bin/env python3

import json
from pathlib import Path

import netboxkit.utils.load_config as load_config_module
from netboxkit.netbox.client import NetboxClient
from netboxkit.utils.load_config import load_config_by_file


def test_load_config_jsonfile_and_env_fallback(tmp_path: Path, monkeypatch) -> None:
    """`load_config_by_file` should resolve JSON values then env fallback."""
    json_path = tmp_path / "secrets.json"
    json_path.write_text(json.dumps({"netbox": {"token": "token-from-json"}}), encoding="utf-8")

    toml_path = tmp_path / "config.toml"
    toml_path.write_text(
        '\n'.join(
            [
                '[netbox]',
                'url = "https://netbox.example.com/api"',
                'token = "jsonfile,netbox.token"',
                'env_only = "jsonfile,ENV_ONLY_KEY"',
                'missing = "jsonfile,not.exists"',
                'timeout = 5',
            ]
        ),
        encoding="utf-8",
    )

    monkeypatch.setenv("ENV_ONLY_KEY", "env-fallback")
    config = load_config_by_file(path=str(toml_path), jsonfile=str(json_path))

    assert config["netbox"]["token"] == "token-from-json"
    assert config["netbox"]["env_only"] == "env-fallback"
    assert config["netbox"]["missing"] == "jsonfile,not.exists"
    assert config["netbox"]["timeout"] == 5


def test_load_config_jsonfile_is_loaded_once(tmp_path: Path, monkeypatch) -> None:
    """`jsonfile` data should be loaded once per config parse."""
    json_path = tmp_path / "secrets.json"
    json_path.write_text(
        json.dumps({"netbox": {"token": "abc", "url": "https://nb.example.com/api"}}),
        encoding="utf-8",
    )

    toml_path = tmp_path / "config.toml"
    toml_path.write_text(
        '\n'.join(
            [
                '[netbox]',
                'url = "jsonfile,netbox.url"',
                'token = "jsonfile,netbox.token"',
            ]
        ),
        encoding="utf-8",
    )

    original_json_load = load_config_module.json.load
    load_calls = {"count": 0}

    def _spy_json_load(*args, **kwargs):
        load_calls["count"] += 1
        return original_json_load(*args, **kwargs)

    monkeypatch.setattr(load_config_module.json, "load", _spy_json_load)
    config = load_config_by_file(path=str(toml_path), jsonfile=str(json_path))

    assert config["netbox"] == {"url": "https://nb.example.com/api", "token": "abc"}
    assert load_calls["count"] == 1


def test_load_config_reads_json_config(tmp_path: Path) -> None:
    json_path = tmp_path / "config.json"
    json_path.write_text(json.dumps({"netbox": {"url": "https://nb.example.com/api"}}), encoding="utf-8")

    config = load_config_by_file(path=str(json_path))

    assert config == {"netbox": {"url": "https://nb.example.com/api"}}


def test_client_from_config(tmp_path: Path, monkeypatch) -> None:
    toml_path = tmp_path / "config.toml"
    toml_path.write_text(
        '\n'.join(
            [
                '[netbox]',
                'url = "https://netbox.example.com/api/"',
                'timeout = 3',
                'slug_transliterate = true',
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("NETBOX_TOKEN", "token-from-env")

    client = NetboxClient.from_config(load_config_by_file(path=str(toml_path)))

    assert client.url == "https://netbox.example.com/api"
    assert client.headers["Authorization"] == "Token token-from-env"
    assert client.timeout == 3
    assert client.slug_transliterate is True


def test_client_from_config_uses_url_env(monkeypatch) -> None:
    monkeypatch.setenv("NETBOX_URL", "https://env.example.com/api")
    monkeypatch.delenv("NETBOX_TOKEN", raising=False)

    client = NetboxClient.from_config({})

    assert client.url == "https://env.example.com/api"
    assert "Authorization" not in client.headers
