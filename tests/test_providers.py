"""
Tests for the text-generation provider client and collaborators.
"""

import json

import httpx
import pytest

from nodeflow.adapters import (
    CompletionOptions,
    HttpTextProvider,
    InMemoryRecordStore,
    RecordNotFound,
    RecordStore,
    StaticIdentityProvider,
    StaticTextProvider,
)
from nodeflow.errors import ProviderError, Unauthorized


def chat_response(text: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


def make_provider(handler) -> HttpTextProvider:
    return HttpTextProvider(
        base_url="https://llm.test/v1/",
        api_key="sk-test",
        model="test-model",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_complete_sends_chat_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=chat_response("Hi there"))

    text = await make_provider(handler).complete(
        "hello", CompletionOptions(temperature=0.3, system_prompt="Be terse.")
    )

    assert text == "Hi there"
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["model"] == "test-model"
    assert seen["body"]["temperature"] == 0.3
    assert seen["body"]["messages"] == [
        {"role": "system", "content": "Be terse."},
        {"role": "user", "content": "hello"},
    ]
    assert "max_tokens" not in seen["body"]


@pytest.mark.asyncio
async def test_option_model_overrides_default():
    def handler(request):
        assert json.loads(request.content)["model"] == "other-model"
        return httpx.Response(200, json=chat_response("ok"))

    assert await make_provider(handler).complete("x", CompletionOptions(model="other-model")) == "ok"


@pytest.mark.asyncio
async def test_rate_limit_is_provider_error():
    provider = make_provider(lambda request: httpx.Response(429, json={"error": "slow down"}))

    with pytest.raises(ProviderError) as exc:
        await provider.complete("x")

    assert exc.value.status_code == 429
    assert "quota" in str(exc.value)


@pytest.mark.asyncio
async def test_server_error_is_provider_error():
    provider = make_provider(lambda request: httpx.Response(500))

    with pytest.raises(ProviderError) as exc:
        await provider.complete("x")

    assert exc.value.status_code == 500


@pytest.mark.asyncio
async def test_transport_failure_is_provider_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderError) as exc:
        await make_provider(handler).complete("x")

    assert isinstance(exc.value.cause, httpx.ConnectError)


@pytest.mark.asyncio
async def test_malformed_response_is_provider_error():
    provider = make_provider(lambda request: httpx.Response(200, json={"choices": []}))

    with pytest.raises(ProviderError, match="no completion text"):
        await provider.complete("x")


@pytest.mark.asyncio
async def test_static_provider_records_calls():
    provider = StaticTextProvider("canned")

    assert await provider.complete("p") == "canned"
    assert provider.calls[0]["prompt"] == "p"
    assert provider.calls[0]["options"].temperature == 0.7


def test_provider_error_attribution():
    error = ProviderError("quota", status_code=429)

    attributed = error.for_node("gen")

    assert attributed.node == "gen"
    assert attributed.status_code == 429
    assert attributed.to_dict()["node"] == "gen"


# ---- Collaborators ----
def test_record_store_append_list_patch():
    store = InMemoryRecordStore()
    first = store.append({"kind": "message", "threadId": "t1", "content": "a"})
    store.append({"kind": "message", "threadId": "t2", "content": "b"})

    assert isinstance(store, RecordStore)
    assert [r["content"] for r in store.list({"threadId": "t1"})] == ["a"]
    assert len(store.list()) == 2
    assert [r["content"] for r in store.list({"content": lambda c: c > "a"})] == ["b"]

    patched = store.patch(first, {"content": "edited"})

    assert patched == {"kind": "message", "threadId": "t1", "content": "edited", "id": first}
    assert store.list({"id": first})[0]["content"] == "edited"


def test_record_store_patch_unknown_id():
    with pytest.raises(RecordNotFound):
        InMemoryRecordStore().patch("42", {"x": 1})


def test_identity_provider():
    assert StaticIdentityProvider("user-1").current_user_id() == "user-1"

    with pytest.raises(Unauthorized):
        StaticIdentityProvider().current_user_id()
