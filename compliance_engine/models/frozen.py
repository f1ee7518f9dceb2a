"""Read-only containers for resource and relationship attribute values."""

from typing import Any


def _read_only(self, *args, **kwargs):
    raise TypeError(f"{type(self).__name__} is read-only")


class FrozenDict(dict):
    """A dict that rejects every mutation after construction."""

    __slots__ = ()

    __setitem__ = __delitem__ = __ior__ = _read_only
    clear = pop = popitem = setdefault = update = _read_only

    def __reduce__(self):
        return (type(self), (dict(self),))


class FrozenList(list):
    """A list that rejects every mutation after construction."""

    __slots__ = ()

    __setitem__ = __delitem__ = __iadd__ = __imul__ = _read_only
    append = extend = insert = pop = remove = clear = sort = reverse = _read_only

    def __reduce__(self):
        return (type(self), (list(self),))


def freeze_value(value: Any) -> Any:
    """
    Return a detached, deeply read-only copy of a JSON-like value.

    Dicts become FrozenDict and lists become FrozenList, so isinstance checks
    against dict and list still hold. Scalars are returned unchanged.
    """
    if isinstance(value, dict):
        return FrozenDict({key: freeze_value(item) for key, item in value.items()})
    if isinstance(value, list):
        return FrozenList(freeze_value(item) for item in value)
    if isinstance(value, tuple):
        return tuple(freeze_value(item) for item in value)
    return value


def thaw_value(value: Any) -> Any:
    """Return a plain mutable copy of a value produced by freeze_value."""
    if isinstance(value, dict):
        return {key: thaw_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [thaw_value(item) for item in value]
    if isinstance(value, tuple):
        return tuple(thaw_value(item) for item in value)
    return value
