"""Member-access ports for the objects tendril instruments.

The registry never touches ``getattr``/``setattr`` directly.  It talks to
a :class:`MemberAccess` port, which answers four questions about a
*target* object and a member *name*: what is the member's value, is it
held by the target itself, how do I replace it, and how do I remove it.

Two adapters are shipped:

- :class:`AttributeAccess` — ordinary Python attributes (instances,
  classes, modules).  "Own" means present in ``vars(target)`` or held
  in a filled ``__slots__`` entry; anything else is inherited through
  the class hierarchy.
- :class:`MappingAccess` — any :class:`~collections.abc.MutableMapping`
  (a dict of callables, a namespace of handlers).  Every key is an own
  member.

See Also:
    :class:`tendril.Registry` — consumer of this port.
"""

from __future__ import annotations

import inspect
import types
from collections.abc import MutableMapping
from typing import Any, Protocol, runtime_checkable

_MISSING: Any = object()


@runtime_checkable
class MemberAccess(Protocol):
    """Dynamic get/set/has/delete of named members on a host object."""

    def get(self, target: Any, name: str) -> Any:
        """Return the member as a caller would see it, or raise ``LookupError``."""
        ...

    def get_own(self, target: Any, name: str) -> Any:
        """Return the raw value stored directly on *target*."""
        ...

    def set(self, target: Any, name: str, value: Any) -> None:
        """Store *value* directly on *target*."""
        ...

    def has_own(self, target: Any, name: str) -> bool:
        """Return ``True`` when *name* is held by *target* itself."""
        ...

    def delete(self, target: Any, name: str) -> None:
        """Remove the member held directly by *target*."""
        ...


class AttributeAccess:
    """Attribute-based adapter for instances, classes and modules.

    ``get`` resolves the member exactly as ``target.name`` would, so a
    method inherited from a class comes back bound.  ``get_own`` reads the
    raw entry from ``vars(target)``; for a class that is the descriptor
    itself (function, ``classmethod``, ``staticmethod``), which is what
    must be written back to restore the class faithfully.

    A filled ``__slots__`` entry is an own member too: its value lives in
    the instance, even though it never appears in ``vars(target)``.
    """

    def get(self, target: Any, name: str) -> Any:
        try:
            return getattr(target, name)
        except AttributeError as exc:
            raise LookupError(name) from exc

    def get_own(self, target: Any, name: str) -> Any:
        namespace = _own_namespace(target)
        if name in namespace:
            return namespace[name]
        value = _slot_value(target, name)
        if value is _MISSING:
            raise KeyError(name)
        return value

    def set(self, target: Any, name: str, value: Any) -> None:
        setattr(target, name, value)

    def has_own(self, target: Any, name: str) -> bool:
        if name in _own_namespace(target):
            return True
        return _slot_value(target, name) is not _MISSING

    def delete(self, target: Any, name: str) -> None:
        delattr(target, name)


class MappingAccess:
    """Adapter for mutable mappings used as a generic key-value entity."""

    def get(self, target: MutableMapping[str, Any], name: str) -> Any:
        value = target.get(name, _MISSING)
        if value is _MISSING:
            raise LookupError(name)
        return value

    def get_own(self, target: MutableMapping[str, Any], name: str) -> Any:
        return target[name]

    def set(self, target: MutableMapping[str, Any], name: str, value: Any) -> None:
        target[name] = value

    def has_own(self, target: MutableMapping[str, Any], name: str) -> bool:
        return name in target

    def delete(self, target: MutableMapping[str, Any], name: str) -> None:
        del target[name]


def access_for(target: Any) -> MemberAccess:
    """Pick the adapter matching *target*'s object model."""
    if isinstance(target, MutableMapping):
        return MappingAccess()
    return AttributeAccess()


def _own_namespace(target: Any) -> Any:
    # Objects with __slots__ and no __dict__; see _slot_value.
    try:
        return vars(target)
    except TypeError:
        return {}


def _slot_value(target: Any, name: str) -> Any:
    """Value held in the ``__slots__`` entry *name*, or ``_MISSING``."""
    slot = inspect.getattr_static(type(target), name, None)
    if not isinstance(slot, types.MemberDescriptorType):
        return _MISSING
    try:
        return slot.__get__(target, type(target))
    except AttributeError:
        # Declared but never assigned.
        return _MISSING
