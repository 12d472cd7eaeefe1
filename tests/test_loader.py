# tests/test_loader.py
"""
Tests for conftree.loader.

Covers:
    - load_file(): JSON/TOML parsing and error reporting
    - load_env(): prefix matching and key mapping
    - load_dotenv_file(): .env loading via python-dotenv
    - load_config(): layering precedence and input isolation
"""

import json
import os

import pytest
import toml

from conftree.exceptions import ConfigSourceError
from conftree.loader import load_config, load_dotenv_file, load_env, load_file
from conftree.node import ConfigTree


@pytest.fixture
def dotenv_vars():
    """Names of variables a test loads from a .env file; removed afterwards."""
    names = []
    yield names
    for name in names:
        os.environ.pop(name, None)


@pytest.fixture
def json_cfg(tmp_path):
    data = {"auth": {"local": {"enabled": False}}, "db": {"host": "localhost", "port": 5432}}
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps(data))
    return str(path)


@pytest.fixture
def toml_cfg(tmp_path):
    data = {"db": {"host": "prod.example.com"}, "workers": 8}
    path = tmp_path / "cfg.toml"
    path.write_text(toml.dumps(data))
    return str(path)


# ---------------------------------------------------------------------------
# load_file
# ---------------------------------------------------------------------------


class TestLoadFile:

    def test_load_json(self, json_cfg):
        assert load_file(json_cfg)["db"] == {"host": "localhost", "port": 5432}

    def test_load_toml(self, toml_cfg):
        assert load_file(toml_cfg) == {"db": {"host": "prod.example.com"}, "workers": 8}

    def test_expands_env_var_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_CONFIG_DIR", str(tmp_path))
        (tmp_path / "c.json").write_text('{"y": 2}')
        assert load_file("$TEST_CONFIG_DIR/c.json") == {"y": 2}

    def test_file_not_found(self):
        with pytest.raises(FileNotFoundError):
            load_file("/nonexistent/path.toml")

    def test_invalid_json(self, tmp_path):
        f = tmp_path / "bad.json"
        f.write_text("{invalid json")
        with pytest.raises(ConfigSourceError) as exc:
            load_file(str(f))
        assert exc.value.path == str(f)

    def test_invalid_toml(self, tmp_path):
        f = tmp_path / "bad.toml"
        f.write_text('[section\nkey = "broken')
        with pytest.raises(RuntimeError):
            load_file(str(f))

    def test_unsupported_format(self, tmp_path):
        f = tmp_path / "test.yaml"
        f.write_text("key: value")
        with pytest.raises(ConfigSourceError, match="Unsupported"):
            load_file(str(f))

    def test_empty_toml(self, tmp_path):
        f = tmp_path / "empty.toml"
        f.write_text("")
        assert load_file(str(f)) == {}

    def test_null_json_is_empty(self, tmp_path):
        f = tmp_path / "null.json"
        f.write_text("null")
        assert load_file(str(f)) == {}

    @pytest.mark.parametrize("document", ["[]", "[1, 2]", "0", "false", '""'])
    def test_non_mapping_json_rejected(self, tmp_path, document):
        f = tmp_path / "scalar.json"
        f.write_text(document)
        with pytest.raises(ConfigSourceError, match="mapping"):
            load_file(str(f))


# ---------------------------------------------------------------------------
# load_env / load_dotenv_file
# ---------------------------------------------------------------------------


class TestLoadEnv:

    def test_prefix_mapping(self):
        environ = {"MYAPP_DB_HOST": "h", "MYAPP_DEBUG": "true", "OTHER_X": "1"}
        assert load_env("MYAPP", environ) == {"db.host": "h", "debug": "true"}

    def test_prefix_case_insensitive_and_trailing_underscore(self):
        environ = {"myapp_port": "80"}
        assert load_env("MYAPP_", environ) == {"port": "80"}

    def test_bare_prefix_ignored(self):
        assert load_env("MYAPP", {"MYAPP_": "x"}) == {}

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("CTTEST_A_B", "v")
        assert load_env("CTTEST")["a.b"] == "v"

    def test_empty_prefix_rejected(self):
        with pytest.raises(ValueError):
            load_env("")


class TestLoadDotenv:

    def test_loads_explicit_file(self, tmp_path, monkeypatch, dotenv_vars):
        monkeypatch.delenv("CTDOT_KEY", raising=False)
        dotenv_vars.append("CTDOT_KEY")
        env_file = tmp_path / ".env"
        env_file.write_text("CTDOT_KEY=from_dotenv\n")
        assert load_dotenv_file(str(env_file)) is True
        assert load_env("CTDOT")["key"] == "from_dotenv"

    def test_does_not_override_existing(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CTDOT_KEY", "from_env")
        env_file = tmp_path / ".env"
        env_file.write_text("CTDOT_KEY=from_dotenv\n")
        load_dotenv_file(str(env_file))
        assert load_env("CTDOT")["key"] == "from_env"

    def test_missing_file(self, tmp_path):
        assert load_dotenv_file(str(tmp_path / "absent.env")) is False


# ---------------------------------------------------------------------------
# load_config
# ---------------------------------------------------------------------------


class TestLoadConfig:

    def test_returns_tree(self):
        tree = load_config(defaults={"a": 1})
        assert isinstance(tree, ConfigTree)
        assert tree.to_value() == {"a": 1}

    def test_no_sources(self):
        assert load_config().is_empty

    def test_files_override_defaults(self, json_cfg, toml_cfg):
        tree = load_config(defaults={"db": {"host": "default", "user": "app"}, "workers": 1},
                           file_paths=[json_cfg, toml_cfg])
        assert tree.get("db.host").value == "prod.example.com"
        assert tree.get("db.port").value == 5432
        assert tree.get("db.user").value == "app"
        assert tree.get("workers").value == 8
        assert tree.get("auth.local.enabled").value is False

    def test_env_override(self, monkeypatch, json_cfg):
        monkeypatch.setenv("APP_CONF_DB_HOST", "envhost")
        tree = load_config(file_paths=[json_cfg], prefix="APP_CONF", use_dotenv=False)
        assert tree.get("db.host").value == "envhost"
        assert tree.get("db.port").value == 5432

    def test_dotenv_feeds_env_layer(self, tmp_path, monkeypatch, dotenv_vars):
        monkeypatch.delenv("CTLAYER_NAME", raising=False)
        dotenv_vars.append("CTLAYER_NAME")
        env_file = tmp_path / ".env"
        env_file.write_text("CTLAYER_NAME=dotenv\n")
        tree = load_config(defaults={"name": "default"}, prefix="CTLAYER",
                           dotenv_path=str(env_file))
        assert tree.get("name").value == "dotenv"

    def test_overrides_win(self, monkeypatch, json_cfg):
        monkeypatch.setenv("APP_CONF_DB_HOST", "envhost")
        tree = load_config(file_paths=[json_cfg], prefix="APP_CONF",
                           overrides={"db.host": "override", "auth.local.enabled": True},
                           use_dotenv=False)
        assert tree.get("db.host").value == "override"
        assert tree.get("auth.local.enabled").value is True

    def test_section_is_not_replaced_by_scalar(self):
        tree = load_config(defaults={"db": {"host": "h"}}, overrides={"db": "flat"})
        assert tree.to_value() == {"db": {"host": "h"}}

    def test_inputs_not_aliased(self):
        defaults = {"db": {"hosts": ["a"]}}
        tree = load_config(defaults=defaults, overrides={"x": 1})
        tree.get("db.hosts").value.append("b")
        tree.set("db.port", ConfigTree(1))
        assert defaults == {"db": {"hosts": ["a"]}}

    def test_missing_file_propagates(self):
        with pytest.raises(FileNotFoundError):
            load_config(file_paths=["/nonexistent/cfg.json"])
