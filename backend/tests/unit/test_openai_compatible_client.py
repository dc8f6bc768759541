"""Unit tests for the OpenAICompatibleClient."""

import json

import httpx
import pytest

from devassist.domain.entities import (
    Attachment,
    Message,
    MessageRole,
    ModelConfig,
    TokenUsage,
)
from devassist.domain.exceptions import (
    ChatProviderError,
    MalformedProviderResponseError,
    ProviderTransportError,
)
from devassist.infrastructure.llm.openai_compatible_client import OpenAICompatibleClient


# ── Helpers ──


_CONFIG = ModelConfig(
    model_name="gpt-4o", base_url="https://api.openai.com/v1/", api_key="sk-test-123456"
)


def _history() -> list[Message]:
    return [
        Message(project_id="p1", role=MessageRole.USER, content="First question"),
        Message(project_id="p1", role=MessageRole.ASSISTANT, content="First answer"),
        Message(project_id="p1", role=MessageRole.USER, content="Look at this"),
    ]


def _mock_completion_response(
    content: str = "Hello!",
    prompt_tokens: int = 10,
    completion_tokens: int = 5,
) -> dict:
    """Build a mock chat-completions JSON response."""
    return {
        "id": "chatcmpl-test123",
        "model": "gpt-4o-2024-08-06",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        },
    }


def _make_mock_transport(
    response_data: dict | None = None,
    status_code: int = 200,
    captured: list[httpx.Request] | None = None,
) -> httpx.MockTransport:
    """Create a mock transport that returns a fixed JSON response."""

    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        return httpx.Response(status_code, json=response_data or {})

    return httpx.MockTransport(handler)


def _make_sse_mock_transport(
    lines: list[str], captured: list[httpx.Request] | None = None
) -> httpx.MockTransport:
    """Create a mock transport that returns SSE lines."""

    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        content = "\n".join(lines) + "\n"
        return httpx.Response(
            200,
            content=content.encode(),
            headers={"content-type": "text/event-stream"},
        )

    return httpx.MockTransport(handler)


def _client(transport: httpx.MockTransport) -> OpenAICompatibleClient:
    return OpenAICompatibleClient(http_client=httpx.AsyncClient(transport=transport))


# ── Request building ──


def test_build_request_prepends_system_message():
    """The assembled system prompt always leads the message list."""
    client = OpenAICompatibleClient()

    request = client.build_request("SYSTEM", _history(), [], _CONFIG)

    messages = request.payload["messages"]
    assert messages[0] == {"role": "system", "content": "SYSTEM"}
    assert [m["role"] for m in messages[1:]] == ["user", "assistant", "user"]
    assert messages[3]["content"] == "Look at this"
    assert request.payload["model"] == "gpt-4o"
    assert request.url == "https://api.openai.com/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test-123456"


def test_build_request_attaches_images_to_last_user_message():
    """Supported images turn the last user message into a content-part array."""
    client = OpenAICompatibleClient()
    attachments = [
        Attachment(document_id="d1", mime_type="image/png", data="UE5H"),
        Attachment(document_id="d2", mime_type="image/heic", data="SEVJQw=="),
        Attachment(document_id="d3", mime_type="application/pdf", data="JVBERg=="),
    ]

    request = client.build_request("SYSTEM", _history(), attachments, _CONFIG)

    messages = request.payload["messages"]
    assert messages[1]["content"] == "First question"
    assert messages[3]["content"] == [
        {"type": "text", "text": "Look at this"},
        {"type": "image_url", "image_url": {"url": "data:image/png;base64,UE5H"}},
    ]


def test_build_request_without_user_message_drops_attachments():
    """Attachments are dropped when there is no user message to carry them."""
    client = OpenAICompatibleClient()
    history = [Message(project_id="p1", role=MessageRole.ASSISTANT, content="Hi")]
    attachments = [Attachment(document_id="d1", mime_type="image/png", data="UE5H")]

    request = client.build_request("SYSTEM", history, attachments, _CONFIG)

    assert all(isinstance(m["content"], str) for m in request.payload["messages"])


def test_build_request_without_supported_images_keeps_plain_content():
    """Unsupported attachments leave the user message as a plain string."""
    client = OpenAICompatibleClient()
    attachments = [Attachment(document_id="d1", mime_type="video/mp4", data="AAAA")]

    request = client.build_request("SYSTEM", _history(), attachments, _CONFIG)

    assert request.payload["messages"][3]["content"] == "Look at this"


def test_provider_metadata():
    """Provider name and image whitelist are reported."""
    client = OpenAICompatibleClient()

    assert client.provider_name == "openai_compatible"
    assert client.supported_attachment_mimes == {"image/png", "image/jpeg", "image/webp"}


# ── Non-streaming ──


@pytest.mark.asyncio
async def test_complete_parses_response():
    """Non-streaming call returns text and usage."""
    captured: list[httpx.Request] = []
    client = _client(_make_mock_transport(_mock_completion_response("The answer is 42."), captured=captured))
    request = client.build_request("SYSTEM", _history(), [], _CONFIG)

    result = await client.complete(request)

    assert result.text == "The answer is 42."
    assert result.usage == TokenUsage(prompt_tokens=10, completion_tokens=5)
    assert result.provider == "openai_compatible"
    assert result.model == "gpt-4o-2024-08-06"
    body = json.loads(captured[0].content)
    assert "stream" not in body
    assert str(captured[0].url) == "https://api.openai.com/v1/chat/completions"


@pytest.mark.asyncio
async def test_complete_defaults_missing_usage_to_zero():
    """A response without usage yields zero token counts."""
    data = _mock_completion_response()
    del data["usage"]
    client = _client(_make_mock_transport(data))

    result = await client.complete(client.build_request("S", _history(), [], _CONFIG))

    assert result.usage == TokenUsage(prompt_tokens=0, completion_tokens=0)


@pytest.mark.asyncio
async def test_complete_http_error_raises_transport_error():
    """Non-2xx responses raise ProviderTransportError with the provider message."""
    error_data = {"error": {"code": 429, "message": "Rate limit exceeded"}}
    client = _client(_make_mock_transport(error_data, status_code=429))

    with pytest.raises(ProviderTransportError) as exc_info:
        await client.complete(client.build_request("S", _history(), [], _CONFIG))

    assert exc_info.value.status_code == 429
    assert "Rate limit" in exc_info.value.message


@pytest.mark.asyncio
async def test_complete_missing_choices_is_malformed():
    """A 200 response without choices is a malformed response."""
    client = _client(_make_mock_transport({"id": "x", "choices": []}))

    with pytest.raises(MalformedProviderResponseError):
        await client.complete(client.build_request("S", _history(), [], _CONFIG))


@pytest.mark.asyncio
async def test_complete_error_body_is_malformed():
    """A 200 response carrying an error object surfaces its message."""
    client = _client(_make_mock_transport({"error": {"code": 400, "message": "Bad model"}}))

    with pytest.raises(MalformedProviderResponseError) as exc_info:
        await client.complete(client.build_request("S", _history(), [], _CONFIG))

    assert exc_info.value.message == "Bad model"


@pytest.mark.asyncio
async def test_complete_network_failure_raises_transport_error():
    """Connection failures become ProviderTransportError with status 0."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(httpx.MockTransport(handler))

    with pytest.raises(ProviderTransportError) as exc_info:
        await client.complete(client.build_request("S", _history(), [], _CONFIG))

    assert exc_info.value.status_code == 0
    assert isinstance(exc_info.value, ChatProviderError)


# ── Streaming ──


@pytest.mark.asyncio
async def test_stream_yields_deltas_and_terminal_usage():
    """Streaming yields text deltas, then a fragment with the final usage."""
    sse_lines = [
        ": keepalive",
        'data: {"choices":[{"delta":{"role":"assistant","content":""}}]}',
        "",
        'data: {"choices":[{"delta":{"content":"Hel"}}]}',
        "",
        'data: {"choices":[{"delta":{"content":"lo"}}]}',
        "",
        'data: {"choices":[],"usage":{"prompt_tokens":3,"completion_tokens":2,"total_tokens":5}}',
        "",
        "data: [DONE]",
    ]
    captured: list[httpx.Request] = []
    client = _client(_make_sse_mock_transport(sse_lines, captured=captured))

    fragments = [
        f async for f in client.stream(client.build_request("S", _history(), [], _CONFIG))
    ]

    assert [f.text for f in fragments] == ["Hel", "lo", ""]
    assert fragments[-1].usage == TokenUsage(prompt_tokens=3, completion_tokens=2)
    body = json.loads(captured[0].content)
    assert body["stream"] is True
    assert body["stream_options"] == {"include_usage": True}


@pytest.mark.asyncio
async def test_stream_without_usage_ends_with_zero_usage():
    """A stream that never reports usage ends with zero counts."""
    sse_lines = [
        'data: {"choices":[{"delta":{"content":"Hi"}}]}',
        "data: [DONE]",
    ]
    client = _client(_make_sse_mock_transport(sse_lines))

    fragments = [
        f async for f in client.stream(client.build_request("S", _history(), [], _CONFIG))
    ]

    assert fragments[-1].usage == TokenUsage()


@pytest.mark.asyncio
async def test_stream_http_error_raises_before_any_fragment():
    """A non-2xx streaming response raises ProviderTransportError."""
    client = _client(
        _make_mock_transport({"error": {"message": "Invalid API key"}}, status_code=401)
    )

    received = []
    with pytest.raises(ProviderTransportError) as exc_info:
        async for fragment in client.stream(client.build_request("S", _history(), [], _CONFIG)):
            received.append(fragment)

    assert received == []
    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Invalid API key"


@pytest.mark.asyncio
async def test_stream_connection_lost_keeps_earlier_fragments():
    """A transport failure mid-stream aborts after the fragments already yielded."""

    async def body():
        yield b'data: {"choices":[{"delta":{"content":"Partial"}}]}\n\n'
        raise httpx.ReadError("connection lost")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=body(), headers={"content-type": "text/event-stream"})

    client = _client(httpx.MockTransport(handler))

    received = []
    with pytest.raises(ProviderTransportError):
        async for fragment in client.stream(client.build_request("S", _history(), [], _CONFIG)):
            received.append(fragment.text)

    assert received == ["Partial"]


@pytest.mark.asyncio
async def test_stream_error_event_is_malformed():
    """An error object inside the stream aborts it."""
    sse_lines = [
        'data: {"choices":[{"delta":{"content":"A"}}]}',
        'data: {"error":{"code":500,"message":"Upstream overloaded"}}',
    ]
    client = _client(_make_sse_mock_transport(sse_lines))

    received = []
    with pytest.raises(MalformedProviderResponseError) as exc_info:
        async for fragment in client.stream(client.build_request("S", _history(), [], _CONFIG)):
            received.append(fragment.text)

    assert received == ["A"]
    assert "Upstream overloaded" in exc_info.value.message
