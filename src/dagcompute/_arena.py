"""Generational arena used as node storage."""

from collections.abc import Callable, Iterator
from dataclasses import dataclass

from ._errors import StaleHandleError


@dataclass(frozen=True, slots=True, order=True)
class NodeKey:
    """Key of an arena slot.

    Attributes:
        index: Slot position in the arena.
        generation: Number of times the slot had been freed when this key
            was issued. A key is only valid while it matches the slot.

    """

    index: int
    generation: int

    def __str__(self) -> str:
        return f"{self.index}v{self.generation}"


class _Vacant:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<vacant>"


_VACANT = _Vacant()


class Arena[V]:
    """Slot storage issuing keys that never alias a later value.

    Removing a value bumps the generation of its slot, so keys handed out
    before the removal stop resolving even after the slot is reused.

    Example:
        >>> arena = Arena[str]()
        >>> key = arena.insert("a")
        >>> arena.get(key)
        'a'
        >>> _ = arena.remove(key)
        >>> key in arena
        False

    """

    __slots__ = ("_free", "_generations", "_len", "_values")

    def __init__(self) -> None:
        self._values: list[V | _Vacant] = []
        self._generations: list[int] = []
        self._free: list[int] = []
        self._len = 0

    def insert(self, value: V) -> NodeKey:
        """Store a value and return its key."""
        if self._free:
            index = self._free.pop()
            self._values[index] = value
        else:
            index = len(self._values)
            self._values.append(value)
            self._generations.append(0)
        self._len += 1
        return NodeKey(index=index, generation=self._generations[index])

    def get(self, key: NodeKey) -> V:
        """Return the value stored under a key.

        Raises:
            StaleHandleError: If the key's value has been removed.

        """
        if key not in self:
            msg = f"Node key {key} does not refer to a live node"
            raise StaleHandleError(msg)
        return self._values[key.index]  # type: ignore[return-value]

    def remove(self, key: NodeKey) -> V:
        """Remove and return the value stored under a key.

        Raises:
            StaleHandleError: If the key's value has already been removed.

        """
        value = self.get(key)
        self._values[key.index] = _VACANT
        self._generations[key.index] += 1
        self._free.append(key.index)
        self._len -= 1
        return value

    def retain(self, predicate: Callable[[NodeKey, V], bool]) -> list[tuple[NodeKey, V]]:
        """Remove every entry for which `predicate` is false.

        Returns:
            The removed (key, value) pairs in slot order.

        """
        removed = [(key, value) for key, value in self.items() if not predicate(key, value)]
        for key, _ in removed:
            self.remove(key)
        return removed

    def keys(self) -> Iterator[NodeKey]:
        """Iterate over live keys in slot order."""
        for key, _ in self.items():
            yield key

    def items(self) -> Iterator[tuple[NodeKey, V]]:
        """Iterate over live (key, value) pairs in slot order."""
        for index, value in enumerate(self._values):
            if not isinstance(value, _Vacant):
                yield NodeKey(index=index, generation=self._generations[index]), value

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, NodeKey):
            return False
        if not 0 <= key.index < len(self._values):
            return False
        return self._generations[key.index] == key.generation and not isinstance(self._values[key.index], _Vacant)

    def __len__(self) -> int:
        return self._len
