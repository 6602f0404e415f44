"""Tests for the single-flight registry."""

from __future__ import annotations

import asyncio

import pytest

from property_import import SingleFlightRegistry


def test_same_key_reuses_task_without_calling_factory() -> None:
    calls = []

    async def work() -> str:
        calls.append(1)
        await asyncio.sleep(0.01)
        return "done"

    async def scenario():
        registry = SingleFlightRegistry()
        first = registry.run_exclusive("k", work)
        second = registry.run_exclusive("k", lambda: pytest.fail("factory must not be called"))
        assert first is second
        assert "k" in registry and len(registry) == 1
        return await asyncio.gather(first, second), registry

    results, registry = asyncio.run(scenario())
    assert results == ["done", "done"]
    assert calls == [1]
    assert len(registry) == 0


def test_different_keys_run_independently() -> None:
    async def scenario():
        registry = SingleFlightRegistry()
        a = registry.run_exclusive("a", lambda: asyncio.sleep(0, result="a"))
        b = registry.run_exclusive("b", lambda: asyncio.sleep(0, result="b"))
        assert a is not b
        return await asyncio.gather(a, b)

    assert asyncio.run(scenario()) == ["a", "b"]


def test_entry_is_removed_after_failure() -> None:
    attempts = []

    async def flaky() -> str:
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("first attempt fails")
        return "ok"

    async def scenario():
        registry = SingleFlightRegistry()
        with pytest.raises(RuntimeError):
            await registry.run_exclusive("k", flaky)
        assert "k" not in registry
        return await registry.run_exclusive("k", flaky)

    assert asyncio.run(scenario()) == "ok"
    assert len(attempts) == 2


def test_entry_is_gone_when_awaiters_resume() -> None:
    async def scenario():
        registry = SingleFlightRegistry()
        await registry.run_exclusive("k", lambda: asyncio.sleep(0))
        return registry.get("k")

    assert asyncio.run(scenario()) is None


def test_aclose_cancels_in_flight_tasks() -> None:
    async def scenario():
        registry = SingleFlightRegistry()
        task = registry.run_exclusive("k", lambda: asyncio.sleep(10))
        await asyncio.sleep(0)
        await registry.aclose()
        assert task.cancelled()
        assert registry.closed and len(registry) == 0
        with pytest.raises(RuntimeError):
            registry.run_exclusive("k", lambda: asyncio.sleep(0))

    asyncio.run(scenario())


def test_context_lives_and_dies_with_the_entry() -> None:
    async def scenario():
        registry = SingleFlightRegistry()
        marker = object()
        first = registry.run_exclusive("k", lambda: asyncio.sleep(0.01, result="done"), context=marker)
        registry.run_exclusive("k", lambda: pytest.fail("factory must not be called"), context=object())
        assert registry.context("k") is marker
        await first
        return registry.context("k")

    assert asyncio.run(scenario()) is None
