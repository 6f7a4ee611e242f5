"""Persistent name → type-slot environment.

A scope is a handle on the newest binding of a singly linked chain. Inserting
never touches existing bindings, so an older handle keeps seeing exactly the
names it saw when it was taken, and a newer binding for the same name shadows
the older one for lookups through the newer handle.
"""

from __future__ import annotations

from typing import Iterator


class _Binding:
    __slots__ = ("name", "slot", "prev")

    def __init__(self, name: str, slot: int, prev: _Binding | None):
        self.name: str = name
        self.slot: int = slot
        self.prev: _Binding | None = prev


class Scope:
    """Chain of (name, slot) bindings, newest first."""

    __slots__ = ("_head", "_depth")

    def __init__(self, head: _Binding | None = None, depth: int = 0):
        self._head: _Binding | None = head
        self._depth: int = depth

    def insert(self, name: str, slot: int) -> Scope:
        """Return a new scope with `name` bound to `slot` in front."""
        return Scope(_Binding(name, slot, self._head), self._depth + 1)

    def get(self, name: str) -> int | None:
        node = self._head
        while node is not None:
            if node.name == name:
                return node.slot
            node = node.prev
        return None

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __len__(self) -> int:
        return self._depth

    def bindings(self) -> Iterator[tuple[str, int]]:
        """Yield every binding, shadowed ones included, newest first."""
        node = self._head
        while node is not None:
            yield (node.name, node.slot)
            node = node.prev

    def visible(self) -> dict[str, int]:
        """Non-shadowed bindings in declaration order."""
        seen: dict[str, int] = {}
        for name, slot in self.bindings():
            if name not in seen:
                seen[name] = slot
        result: dict[str, int] = {}
        for name in reversed(list(seen)):
            result[name] = seen[name]
        return result

    def __repr__(self) -> str:
        parts: list[str] = []
        for name, slot in self.bindings():
            parts.append(name + "=#" + str(slot))
        return "Scope(" + ", ".join(parts) + ")"
