"""Fixed-window rate limiting keyed by wallet or client IP."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from src.pm_common.errors import RateLimitError
from src.pm_common.redis_client import incr_fixed_window
from src.pm_gateway.auth.jwt_handler import create_wallet_token
from src.pm_gateway.middleware import rate_limit
from src.pm_gateway.middleware.rate_limit import RateLimiter, client_identity


def _request(headers: dict[str, str] | None = None, host: str | None = "10.0.0.9") -> MagicMock:
    request = MagicMock()
    request.headers = headers or {}
    request.client = MagicMock(host=host) if host else None
    return request


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestClientIdentity:
    def test_wallet_from_valid_token(self) -> None:
        token, _ = create_wallet_token("0xa11ce", "evm", "s-1")
        assert client_identity(_request(), _bearer(token)) == "wallet:0xa11ce"

    def test_invalid_token_falls_back_to_ip(self) -> None:
        assert client_identity(_request(), _bearer("garbage")) == "ip:10.0.0.9"

    def test_forwarded_for_first_hop(self) -> None:
        request = _request({"x-forwarded-for": "203.0.113.7, 10.0.0.1"})
        assert client_identity(request, None) == "ip:203.0.113.7"

    def test_real_ip_header(self) -> None:
        assert client_identity(_request({"x-real-ip": "198.51.100.4"}), None) == "ip:198.51.100.4"

    def test_no_client(self) -> None:
        assert client_identity(_request(host=None), None) == "ip:unknown"


class TestRateLimiter:
    @pytest.fixture
    def counter(self, monkeypatch: pytest.MonkeyPatch) -> dict[str, Any]:
        state: dict[str, Any] = {"counts": {}, "keys": []}

        async def fake_incr(redis: Any, key: str, window_seconds: int) -> tuple[int, int]:
            state["counts"][key] = state["counts"].get(key, 0) + 1
            state["keys"].append(key)
            return state["counts"][key], 42

        monkeypatch.setattr(rate_limit, "get_redis", AsyncMock(return_value=object()))
        monkeypatch.setattr(rate_limit, "incr_fixed_window", fake_incr)
        return state

    async def test_allows_up_to_limit_then_rejects(self, counter: dict[str, Any]) -> None:
        limiter = RateLimiter("bets:prepare", limit=2, window_seconds=60)
        await limiter(_request(), None)
        await limiter(_request(), None)
        with pytest.raises(RateLimitError) as exc_info:
            await limiter(_request(), None)
        assert exc_info.value.http_status == 429
        assert exc_info.value.retry_after == 42
        assert counter["keys"][0] == "ratelimit:bets:prepare:ip:10.0.0.9"

    async def test_callers_counted_separately(self, counter: dict[str, Any]) -> None:
        limiter = RateLimiter("bets:prepare", limit=1, window_seconds=60)
        await limiter(_request(host="10.0.0.1"), None)
        await limiter(_request(host="10.0.0.2"), None)
        with pytest.raises(RateLimitError):
            await limiter(_request(host="10.0.0.1"), None)


class _FakePipeline:
    def __init__(self, redis: "_FakeRedis", transaction: bool) -> None:
        self._redis = redis
        self.transaction = transaction
        self._ops: list[tuple[str, str, dict[str, Any]]] = []

    async def __aenter__(self) -> "_FakePipeline":
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None

    def set(self, key: str, value: int, ex: int | None = None, nx: bool = False) -> None:
        self._ops.append(("set", key, {"value": value, "ex": ex, "nx": nx}))

    def incr(self, key: str) -> None:
        self._ops.append(("incr", key, {}))

    def ttl(self, key: str) -> None:
        self._ops.append(("ttl", key, {}))

    async def execute(self) -> list[Any]:
        self._redis.executed.append((self.transaction, [op for op, _, _ in self._ops]))
        results: list[Any] = []
        for op, key, args in self._ops:
            if op == "set":
                if args["nx"] and key in self._redis.values:
                    results.append(None)
                    continue
                self._redis.values[key] = args["value"]
                if args["ex"] is not None:
                    self._redis.ttls[key] = args["ex"]
                results.append(True)
            elif op == "incr":
                self._redis.values[key] = self._redis.values.get(key, 0) + 1
                results.append(self._redis.values[key])
            else:
                results.append(self._redis.ttls.get(key, -1))
        return results


class _FakeRedis:
    """Pipeline-only fake; any command sent outside a pipeline raises AttributeError."""

    def __init__(self) -> None:
        self.values: dict[str, int] = {}
        self.ttls: dict[str, int] = {}
        self.executed: list[tuple[bool, list[str]]] = []

    def pipeline(self, transaction: bool = True) -> _FakePipeline:
        return _FakePipeline(self, transaction)


class TestIncrFixedWindow:
    async def test_first_hit_opens_window(self) -> None:
        redis = _FakeRedis()
        assert await incr_fixed_window(redis, "k", 60) == (1, 60)  # type: ignore[arg-type]
        assert redis.ttls["k"] == 60

    async def test_later_hits_keep_remaining_ttl(self) -> None:
        redis = _FakeRedis()
        await incr_fixed_window(redis, "k", 60)  # type: ignore[arg-type]
        redis.ttls["k"] = 17
        assert await incr_fixed_window(redis, "k", 60) == (2, 17)  # type: ignore[arg-type]
        assert redis.ttls["k"] == 17

    async def test_ttl_is_set_in_the_same_transaction(self) -> None:
        redis = _FakeRedis()
        await incr_fixed_window(redis, "k", 60)  # type: ignore[arg-type]
        assert redis.executed == [(True, ["set", "incr", "ttl"])]
