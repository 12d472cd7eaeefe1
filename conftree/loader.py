# conftree/loader.py
"""
conftree.loader
---------------

Collaborators that turn configuration sources into dynamic values and layer
them into a single ``ConfigTree``.

Layering precedence (lowest to highest priority):
1.  **Defaults dictionary (`defaults`)**: base values provided programmatically.
2.  **Config files (`file_paths`)**: JSON or TOML files, in the given order.
3.  **Environment variables (`prefix`)**: variables named ``PREFIX_...``,
    including those loaded from a `.env` file. ``MYAPP_DB_HOST`` maps to
    ``db.host``. Values are kept as strings.
4.  **Overrides dictionary (`overrides`)**: dot-notation keys, highest priority.

Each layer is merged with ``ConfigTree.merge``: later layers override leaf
values of earlier ones, and nested sections are combined key by key.
"""

import json
import logging
import os
from typing import Any, Dict, Iterable, Mapping, Optional

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib

from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigSourceError
from .node import ConfigTree
from .utils import expand_path

log = logging.getLogger(__name__)


def load_file(file_path: str) -> Dict[str, Any]:
    """
    Load a single JSON or TOML file into a plain dictionary.

    Args:
        file_path: Path to the file. ``~`` and environment variables are
            expanded.

    Returns:
        The parsed content; an empty dict for an empty document.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigSourceError: If the extension is unsupported, parsing fails or
            the document is not a mapping.
    """
    path = expand_path(file_path)
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    ext = os.path.splitext(path)[1].lower()
    try:
        if ext == ".toml":
            with open(path, mode="rb") as f:
                content = tomllib.load(f)
        elif ext == ".json":
            with open(path, mode="r", encoding="utf-8") as f:
                content = json.load(f)
        else:
            raise ConfigSourceError(path, f"Unsupported config file type: {ext or '(none)'}")
    except ConfigSourceError:
        raise
    except (OSError, ValueError) as e:
        raise ConfigSourceError(path, e) from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigSourceError(path, f"Top-level document must be a mapping, got {type(content).__name__}")

    log.debug("Loaded config file %s", path)
    return content


def load_env(prefix: str, environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Collect environment variables starting with ``prefix`` into flat dot-keys.

    The part after the prefix is lowercased and underscores become the tree
    separator, so with prefix ``"MYAPP"`` the variable ``MYAPP_DB_HOST=x``
    yields ``{"db.host": "x"}``. Values are not converted.

    Args:
        prefix: Variable prefix; a trailing underscore is optional.
        environ: Mapping to read instead of ``os.environ``.

    Raises:
        ValueError: If ``prefix`` is empty.
    """
    prefix = (prefix or "").strip().rstrip("_")
    if not prefix:
        raise ValueError("An environment variable prefix is required.")

    prefix_match = prefix.upper() + "_"
    plen = len(prefix_match)
    source = os.environ if environ is None else environ

    env_data = {}
    for var, raw_value in source.items():
        if not var.upper().startswith(prefix_match):
            continue
        dot_key = var[plen:].lower().replace("_", ConfigTree.SEPARATOR)
        if not dot_key:
            continue
        log.debug("Env var '%s' -> key '%s'", var, dot_key)
        env_data[dot_key] = raw_value

    log.debug("Collected %d env vars with prefix '%s'", len(env_data), prefix)
    return env_data


def load_dotenv_file(dotenv_path: Optional[str] = None) -> bool:
    """
    Load a ``.env`` file into ``os.environ`` without overriding existing
    variables.

    Without an explicit path the file is searched from the current working
    directory upwards. Returns True when variables were loaded.
    """
    actual_path = expand_path(dotenv_path) if dotenv_path else find_dotenv(usecwd=True)
    if not actual_path or not os.path.exists(actual_path):
        log.debug("No .env file found (searched: %s)", dotenv_path or "auto")
        return False

    try:
        loaded = load_dotenv(dotenv_path=actual_path, override=False)
    except OSError as e:
        log.warning("Failed to load .env file %s: %s", actual_path, e)
        return False

    log.debug("Loaded .env file from %s: %s", actual_path, loaded)
    return loaded


def load_config(defaults: Optional[Mapping[str, Any]] = None,
                file_paths: Iterable[str] = (),
                prefix: Optional[str] = None,
                overrides: Optional[Mapping[str, Any]] = None,
                use_dotenv: bool = True,
                dotenv_path: Optional[str] = None) -> ConfigTree:
    """
    Build a ``ConfigTree`` from every source, lowest precedence first.

    Args:
        defaults: Base values; nested dicts and/or dotted keys.
        file_paths: JSON/TOML files, later files override earlier ones.
        prefix: Environment variable prefix; environment is skipped if None.
        overrides: Final values, nested dicts and/or dotted keys.
        use_dotenv: Whether to load a ``.env`` file before reading the
            environment. Only relevant when ``prefix`` is given.
        dotenv_path: Explicit ``.env`` location.

    Returns:
        A new tree. It never shares nodes with the caller's inputs.
    """
    layers = []
    if defaults:
        layers.append(("defaults", defaults))
    for path in file_paths:
        layers.append((f"file:{path}", load_file(path)))
    if prefix is not None:
        if use_dotenv:
            load_dotenv_file(dotenv_path)
        layers.append((f"env:{prefix}", load_env(prefix)))
    if overrides:
        layers.append(("overrides", overrides))

    tree = ConfigTree()
    for source, data in layers:
        # clone so that leaf values (lists, ...) are not shared with the input
        tree.merge(ConfigTree(data).clone())
        log.debug("Merged layer %s", source)
    return tree
