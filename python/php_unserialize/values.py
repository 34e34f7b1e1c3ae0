"""
Value model for decoded PHP data.

Scalars map onto Python builtins (``None``, ``bool``, ``int``, ``float``,
``str``). PHP arrays become :class:`PhpArray`, an ordered read-only mapping,
and objects become :class:`PhpObject`. A back-reference in the input yields
the very same container instance, so the tree may share nodes or contain
cycles.
"""

import reprlib
from collections.abc import Iterator, Mapping
from threading import get_ident
from typing import Any, Union

# (id(left), id(right), thread) of array comparisons in progress
_comparing: set[tuple[int, int, int]] = set()


def _slot(key: Any) -> tuple[type, Any]:
    # True, 1 and 1.0 hash alike but are distinct PHP keys
    return type(key), key


def _same(left: Any, right: Any) -> bool:
    return left is right or left == right


class PhpArray(Mapping):
    """
    Ordered mapping decoded from a PHP array. Keys keep their input order.

    Keys are told apart by type as well as value, so ``b:1`` and ``i:1`` are
    two entries. Comparing against a plain ``dict`` goes through the dict's
    own key rules. Arrays that contain themselves compare equal when their
    shapes match; very deep arrays are compared recursively and can hit the
    interpreter's recursion limit.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Any = ()) -> None:
        self._items: dict[tuple[type, Any], tuple[Any, Any]] = {}
        if isinstance(items, Mapping):
            items = items.items()
        for key, value in items:
            self._set(key, value)

    def _set(self, key: Any, value: Any) -> None:
        # only the decoder fills an array, before handing it out
        self._items[_slot(key)] = (key, value)

    def __getitem__(self, key: Any) -> Any:
        try:
            return self._items[_slot(key)][1]
        except KeyError:
            raise KeyError(key) from None

    def __iter__(self) -> Iterator[Any]:
        return (key for key, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return NotImplemented
        if self is other:
            return True
        token = (id(self), id(other), get_ident())
        if token in _comparing:
            return True
        _comparing.add(token)
        try:
            if isinstance(other, PhpArray):
                return self._items.keys() == other._items.keys() and all(
                    _same(value, other._items[slot][1]) for slot, (_, value) in self._items.items()
                )
            return dict(self.items()) == dict(other.items())
        finally:
            _comparing.discard(token)

    __hash__ = None  # type: ignore[assignment]

    def _body(self) -> str:
        return "{" + ", ".join(f"{key!r}: {value!r}" for key, value in self._items.values()) + "}"

    @reprlib.recursive_repr()
    def __repr__(self) -> str:
        return f"PhpArray({self._body()})"


class PhpObject:
    """A PHP object: class name plus its attributes, in input order."""

    __slots__ = ("name", "attributes")

    def __init__(self, name: str = "", attributes: Any = ()) -> None:
        self.name = name
        self.attributes = attributes if isinstance(attributes, PhpArray) else PhpArray(attributes)

    def __getitem__(self, key: Any) -> Any:
        return self.attributes[key]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PhpObject):
            return NotImplemented
        return self.name == other.name and self.attributes == other.attributes

    __hash__ = None  # type: ignore[assignment]

    @reprlib.recursive_repr()
    def __repr__(self) -> str:
        return f"PhpObject({self.name!r}, {self.attributes._body()})"


Value = Union[None, bool, int, float, str, bytes, PhpArray, PhpObject]
