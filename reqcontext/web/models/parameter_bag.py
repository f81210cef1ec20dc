"""
Parameter bag models.

Ordered, read-only containers wrapping one category of request input
(query, post, payload, headers, server variables, environment).
"""

from typing import Any, Dict, Iterator, Mapping, Optional


class ParameterBag:
    """
    Immutable ordered mapping of request parameters.

    The source mapping is copied once at construction. Lookups never
    mutate the bag: a default passed to ``get`` is returned, not stored.
    """

    def __init__(self, source: Optional[Mapping[str, Any]] = None):
        self._data: Dict[str, Any] = {}
        for key, value in (source or {}).items():
            self._data[self._normalize_key(key)] = value

    def _normalize_key(self, key: str) -> str:
        return key

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key``, or ``default`` when absent."""
        return self._data.get(self._normalize_key(key), default)

    def get_all(self) -> Dict[str, Any]:
        """Return a snapshot of every stored parameter."""
        return dict(self._data)

    def keys(self):
        return self._data.keys()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._normalize_key(key) in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"


class HeaderBag(ParameterBag):
    """
    Request headers keyed case-insensitively.

    ``X-Forwarded-For``, ``x_forwarded_for`` and ``X_FORWARDED_FOR`` all
    address the same entry; stored keys are lower-case and dash separated.
    """

    def _normalize_key(self, key: str) -> str:
        return key.replace("_", "-").lower()
