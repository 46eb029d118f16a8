from __future__ import annotations

import pytest

from voicedeck_ai.tool_runtime.capabilities import CapabilityRegistration
from voicedeck_ai.tool_runtime.context import AuthAccessors, CapabilityMap


def _map(*registrations: CapabilityRegistration) -> CapabilityMap:
    return CapabilityMap(tuple(registrations))


def test_capability_map_exposes_methods_by_name() -> None:
    components = _map(CapabilityRegistration.from_callables("menu", {"open": lambda: "opened"}))

    assert list(components) == ["menu"]
    assert len(components) == 1
    assert components["menu"]["open"]() == "opened"
    assert "cart" not in components
    assert components.get("cart") is None
    assert components.method("menu", "close") is None


@pytest.mark.asyncio
async def test_call_absent_capability_is_a_logged_noop() -> None:
    components = _map()
    assert await components.call("cart", "add_item", "sku-1") is None


@pytest.mark.asyncio
async def test_call_awaits_async_methods() -> None:
    async def add_item(sku, qty=1):
        return {"sku": sku, "qty": qty}

    components = _map(CapabilityRegistration.from_callables("cart", {"add_item": add_item}))

    assert await components.call("cart", "add_item", "sku-1", qty=2) == {"sku": "sku-1", "qty": 2}


@pytest.mark.asyncio
async def test_auth_accessors_without_auth_capability() -> None:
    auth = AuthAccessors(_map())

    assert auth.get_credentials() is None
    assert auth.get_user_info() is None
    assert await auth.get_jwt() is None
    assert await auth.get_tokens() == {"id_token": None, "access_token": None, "refresh_token": None}


@pytest.mark.asyncio
async def test_auth_accessors_read_from_auth_capability() -> None:
    async def get_tokens():
        return {"id_token": "id", "access_token": "access", "extra": "ignored"}

    auth = AuthAccessors(
        _map(
            CapabilityRegistration.from_callables(
                "auth",
                {
                    "get_tokens": get_tokens,
                    "get_jwt": lambda: "jwt",
                    "get_user_info": lambda: {"email": "a@b.c"},
                    "get_credentials": lambda: {"access_key_id": "AKIA"},
                },
            )
        )
    )

    assert await auth.get_tokens() == {"id_token": "id", "access_token": "access", "refresh_token": None}
    assert await auth.get_jwt() == "jwt"
    assert auth.get_user_info() == {"email": "a@b.c"}
    assert auth.get_credentials() == {"access_key_id": "AKIA"}


@pytest.mark.asyncio
async def test_auth_accessors_swallow_provider_errors() -> None:
    def boom():
        raise RuntimeError("auth provider down")

    auth = AuthAccessors(
        _map(CapabilityRegistration.from_callables("auth", {"get_jwt": boom, "get_tokens": boom}))
    )

    assert await auth.get_jwt() is None
    assert (await auth.get_tokens())["access_token"] is None
