# conftree/__init__.py
"""
conftree – hierarchical configuration tree.

Import `ConfigTree` from `conftree.node`, the layered loader from
`conftree.loader` and `ConfigSourceError` from `conftree.exceptions`.

    - ``ConfigTree``: leaf/branch nodes, dotted-path access, shallow merge
    - ``load_config``: defaults < files < env vars < overrides
    - ``conftree`` console script for inspecting merged configuration
"""

from .exceptions import ConfigSourceError
from .loader import load_config
from .node import ConfigTree

__version__ = "0.1.0"

__all__ = ["ConfigTree", "ConfigSourceError", "load_config"]
