"""Key-value storage backing one browser profile.

All client state (visit counter, one-shot flags, cached identity, delivery
markers) lives behind this interface. Reads and writes are synchronous.
"""

from typing import Protocol

import redis


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store; one instance models one profile."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        """Wipe the profile, like a user clearing site data."""

        self._data.clear()

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)


class RedisStore:
    """Redis-backed profile store; keys are namespaced per profile."""

    def __init__(self, url: str, profile_id: str, client: redis.Redis | None = None) -> None:
        self.rdb = client or redis.Redis.from_url(url, decode_responses=True)
        self.prefix = f"cashoffer:profile:{profile_id}:"

    def get(self, key: str) -> str | None:
        return self.rdb.get(self.prefix + key)

    def set(self, key: str, value: str) -> None:
        self.rdb.set(self.prefix + key, value)

    def delete(self, key: str) -> None:
        self.rdb.delete(self.prefix + key)
