# tests/fakes.py

from __future__ import annotations

import fnmatch

import redis


class FakeRedis:
    """
    In-memory stand-in for the subset of redis.Redis the response cache uses.

    - Keeps values as bytes, like a client created without decode_responses
    - Records the TTL passed to set() for assertions
    - Matches scan_iter() patterns with glob rules ('*', '?', '[...]')
    """

    def __init__(self) -> None:
        self.store: dict[str, bytes] = {}
        self.ttls: dict[str, int | None] = {}

    def ping(self) -> bool:
        return True

    def get(self, key: str) -> bytes | None:
        return self.store.get(key)

    def set(self, key: str, value, ex: int | None = None) -> bool:
        if isinstance(value, str):
            value = value.encode("utf-8")
        self.store[key] = value
        self.ttls[key] = ex
        return True

    def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if key in self.store:
                del self.store[key]
                self.ttls.pop(key, None)
                removed += 1
        return removed

    def scan_iter(self, match: str | None = None):
        for key in list(self.store):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key


class BrokenRedis:
    """Every call fails the way an unreachable Redis server does."""

    def __init__(self) -> None:
        self.calls = 0

    def _fail(self, *args, **kwargs):
        self.calls += 1
        raise redis.ConnectionError("Connection refused")

    ping = _fail
    get = _fail
    set = _fail
    delete = _fail
    scan_iter = _fail
