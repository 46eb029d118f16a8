from __future__ import annotations

import asyncio
import time

import pytest

from voicedeck_ai.tool_runtime.capabilities import CapabilityRegistration, CapabilityRegistry


def _reg(name: str, **methods) -> CapabilityRegistration:
    return CapabilityRegistration.from_callables(name, methods or {"noop": lambda: None})


def test_registry_empty_has_false() -> None:
    reg = CapabilityRegistry()
    assert reg.has("cart") is False
    assert reg.names() == []


def test_registry_get_missing_returns_none() -> None:
    reg = CapabilityRegistry()
    assert reg.get("cart") is None


def test_registry_register_then_get_returns_same_instance() -> None:
    reg = CapabilityRegistry()
    cart = _reg("cart")
    reg.register(cart)

    assert reg.has("cart") is True
    assert reg.get("cart") is cart


def test_registry_register_overwrites_existing_name() -> None:
    reg = CapabilityRegistry()
    first = _reg("cart", add=lambda: 1)
    second = _reg("cart", add=lambda: 2)

    reg.register(first)
    reg.register(second)

    assert reg.get("cart") is second
    assert reg.get("cart").methods["add"].func() == 2
    assert reg.names() == ["cart"]


def test_registry_unregister_is_idempotent() -> None:
    reg = CapabilityRegistry()
    reg.register(_reg("menu"))

    assert reg.unregister("menu") is True
    assert reg.unregister("menu") is False
    assert reg.has("menu") is False
    assert reg.list() == ()


def test_registry_list_is_a_snapshot() -> None:
    reg = CapabilityRegistry()
    reg.register(_reg("app"))
    snapshot = reg.list()

    reg.register(_reg("chat"))

    assert [r.name for r in snapshot] == ["app"]
    assert [r.name for r in reg.list()] == ["app", "chat"]


def test_registry_missing_and_is_ready() -> None:
    reg = CapabilityRegistry()
    reg.register(_reg("app"))

    assert reg.missing(["app", "cart", "menu"]) == ["cart", "menu"]
    assert reg.is_ready(["app"]) is True
    assert reg.is_ready(["app", "cart"]) is False
    assert reg.is_ready([]) is True


def test_registry_notifies_listeners_on_mutation() -> None:
    reg = CapabilityRegistry()
    seen = []
    reg.add_listener(lambda r: seen.append(tuple(r.names())))

    reg.register(_reg("app"))
    reg.unregister("app")
    reg.unregister("app")

    assert seen == [("app",), ()]


def test_registry_listener_failure_does_not_block_registration() -> None:
    reg = CapabilityRegistry()

    def boom(_registry):
        raise RuntimeError("listener failed")

    reg.add_listener(boom)
    reg.register(_reg("app"))

    assert reg.has("app") is True


def test_registry_remove_listener() -> None:
    reg = CapabilityRegistry()
    seen = []

    def listener(r):
        seen.append(r.names())

    reg.add_listener(listener)
    reg.remove_listener(listener)
    reg.register(_reg("app"))

    assert seen == []


def test_registry_describe_lists_methods() -> None:
    reg = CapabilityRegistry()
    reg.register(_reg("cart", add=lambda item: item))

    doc = reg.describe()

    assert doc["cart"]["description"] == "cart component methods"
    assert list(doc["cart"]["methods"]) == ["add"]


@pytest.mark.asyncio
async def test_wait_ready_returns_immediately_when_ready() -> None:
    reg = CapabilityRegistry()
    reg.register(_reg("app"))

    assert await reg.wait_ready(["app"], poll_ms=1000, max_attempts=5) is True


@pytest.mark.asyncio
async def test_wait_ready_sees_late_registration() -> None:
    reg = CapabilityRegistry()

    async def mount_later():
        await asyncio.sleep(0.01)
        reg.register(_reg("cart"))

    task = asyncio.create_task(mount_later())
    ready = await reg.wait_ready(["cart"], poll_ms=5, max_attempts=50)
    await task

    assert ready is True


@pytest.mark.asyncio
async def test_wait_ready_is_bounded_and_never_raises() -> None:
    reg = CapabilityRegistry()
    started = time.monotonic()

    ready = await reg.wait_ready(["never"], poll_ms=10, max_attempts=3)

    elapsed = time.monotonic() - started
    assert ready is False
    assert elapsed >= 0.03
    assert elapsed < 1.0
