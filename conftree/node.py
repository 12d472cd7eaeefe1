# conftree/node.py
"""
conftree.node
-------------

Recursive tree holding hierarchical configuration data.

A ``ConfigTree`` is either a *leaf* carrying an opaque value (scalar, list,
blob or ``None``) or a *branch* carrying a mapping of child nodes. Whether a
node is a leaf is never stored: it is derived from the children mapping being
empty, so a node without children and without a value is an *empty leaf*.

Nodes are built from, and serialized back to, plain dynamic values (the
nested dicts produced by JSON/TOML parsers), addressed with dotted paths, and
layered with :meth:`ConfigTree.merge`.

Merge is shallow: child nodes are shared by reference between the two trees
involved. Use :meth:`ConfigTree.clone` before merging when isolation is
required.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any, ItemsView, Iterator, KeysView

from .utils import join_path, split_path

log = logging.getLogger(__name__)


class ConfigTree:
    """
    A node of a configuration tree.

    Examples:
        >>> tree = ConfigTree({"db": {"host": "localhost"}, "app.name": "demo"})
        >>> tree.get("db.host").value
        'localhost'
        >>> tree.to_value()
        {'db': {'host': 'localhost'}, 'app': {'name': 'demo'}}
    """

    #: Hierarchy separator understood by the path accessors.
    SEPARATOR = "."

    __slots__ = ("_value", "_children")

    def __init__(self, value: Any = None, split_keys: bool = True) -> None:
        self._value: Any = None
        self._children: dict[str, ConfigTree] = {}
        self.set_value(value, split_keys=split_keys)

    # --- Leaf / branch state ---

    @property
    def is_leaf(self) -> bool:
        """True when the node has no children."""
        return not self._children

    @property
    def is_empty(self) -> bool:
        """True for a leaf without a value (a freshly created node)."""
        return not self._children and self._value is None

    @property
    def value(self) -> Any:
        """Leaf content; ``None`` for branches and empty leaves."""
        return self._value

    def clear(self) -> None:
        """Drop the leaf value and every child."""
        self._value = None
        self._children.clear()

    # --- Dynamic-value bridge ---

    def to_value(self) -> Any:
        """
        Serialize the subtree rooted here to a plain dynamic value.

        Leaves return their stored value unchanged (``None`` for an empty
        leaf). Branches return a new ``dict`` built recursively from their
        children.
        """
        if self.is_leaf:
            return self._value
        return {key: child.to_value() for key, child in self._children.items()}

    def set_value(self, value: Any, split_keys: bool = True) -> None:
        """
        Replace the whole subtree with one built from ``value``.

        The node is cleared first, even when ``value`` is ``None``. A mapping
        whose keys are all strings becomes a branch with one child per entry;
        anything else is stored verbatim as leaf content.

        Args:
            value: Dynamic value to load (typically parsed JSON/TOML).
            split_keys: When True (default), mapping keys containing the
                separator are expanded into nested nodes, so ``{"a.b": 1}``
                is stored as ``{"a": {"b": 1}}``. When False keys are stored
                as given.
        """
        self.clear()

        if isinstance(value, Mapping) and all(isinstance(k, str) for k in value):
            for key, raw in value.items():
                child = ConfigTree(raw, split_keys=split_keys)
                if split_keys:
                    self.set(key, child)
                else:
                    self._children[key] = child
        else:
            self._value = value

    # --- Path-indexed access ---

    def get(self, path: str, default: Any = None) -> ConfigTree | Any:
        """
        Return the node addressed by a dotted ``path``.

        Args:
            path: A single key or a separator-joined key sequence.
            default: Returned when any segment of the path is missing.

        Returns:
            The ``ConfigTree`` found at ``path``, or ``default``.
        """
        head, tail = split_path(path, self.SEPARATOR)
        child = self._children.get(head)
        if child is None:
            return default
        if tail is None:
            return child
        return child.get(tail, default)

    def set(self, path: str, node: ConfigTree | None) -> None:
        """
        Attach ``node`` at a dotted ``path``, or remove the entry when
        ``node`` is ``None``.

        Missing intermediate nodes are created on the way down. The node
        object is stored by reference, not copied. Descending through a leaf
        that holds a value turns that leaf into a branch and drops its value.
        Removing below a missing key still leaves an empty intermediate node.
        """
        head, tail = split_path(path, self.SEPARATOR)

        if tail is None:
            if node is None:
                self._children.pop(head, None)
            else:
                self._children[head] = node
            return

        child = self._children.get(head)
        if child is None:
            child = ConfigTree()
            child.set(tail, node)
            self._children[head] = child
            return

        if child.is_leaf and child._value is not None and node is not None:
            log.debug("Converting leaf '%s' (value %r) into a branch to set '%s'.",
                      head, child._value, path)
            child._value = None
        child.set(tail, node)

    def __getitem__(self, path: str) -> ConfigTree:
        node = self.get(path)
        if node is None:
            raise KeyError(path)
        return node

    def __setitem__(self, path: str, value: Any) -> None:
        if value is not None and not isinstance(value, ConfigTree):
            value = ConfigTree(value)
        self.set(path, value)

    def __delitem__(self, path: str) -> None:
        if self.get(path) is None:
            raise KeyError(path)
        self.set(path, None)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.get(path) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._children)

    def __len__(self) -> int:
        return len(self._children)

    def keys(self) -> KeysView[str]:
        """Immediate child keys."""
        return self._children.keys()

    def items(self) -> ItemsView[str, ConfigTree]:
        """Immediate (key, child node) pairs."""
        return self._children.items()

    # --- Merge ---

    def merge(self, other: ConfigTree) -> ConfigTree:
        """
        Merge ``other`` into this node in place; ``other`` wins conflicts.

        - An empty leaf adopts ``other``'s value and children. The children
          dict is copied but the child nodes are shared with ``other``.
        - Two branches are merged key by key: existing children are merged
          recursively, missing ones are inserted by reference.
        - Two leaves: ``other``'s value replaces ours unless ``other`` is an
          empty leaf.
        - A leaf against a branch (either way round) is left untouched.

        Returns:
            This node, so merges can be chained.
        """
        if self.is_empty:
            self._value = other._value
            self._children = dict(other._children)
        elif not self.is_leaf and not other.is_leaf:
            for key, theirs in other._children.items():
                mine = self._children.get(key)
                if mine is None:
                    self._children[key] = theirs
                else:
                    mine.merge(theirs)
        elif self.is_leaf and other.is_leaf:
            if other._value is not None:
                self._value = other._value
        else:
            log.debug("Skipping merge of %s into %s: shape conflict.",
                      "branch" if self.is_leaf else "leaf",
                      "leaf" if self.is_leaf else "branch")
        return self

    def clone(self) -> ConfigTree:
        """Return an independent deep copy of this subtree."""
        twin = ConfigTree()
        twin._value = copy.deepcopy(self._value)
        twin._children = {key: child.clone() for key, child in self._children.items()}
        return twin

    # --- Utility Methods ---

    def flatten(self, prefix: str = "") -> dict[str, Any]:
        """Map the dotted path of every leaf below this node to its value."""
        if self.is_leaf:
            return {prefix: self._value} if prefix else {}
        flat: dict[str, Any] = {}
        for key, child in self._children.items():
            path = join_path(prefix, key, separator=self.SEPARATOR)
            if child.is_leaf:
                flat[path] = child._value
            else:
                flat.update(child.flatten(path))
        return flat

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigTree):
            return NotImplemented
        return self.to_value() == other.to_value()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_value()!r})"
