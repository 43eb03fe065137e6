from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from smartcapture.cloud.exceptions import CloudClientError, NetworkUnavailableError, ProviderError
from smartcapture.cloud.openai_chat_adapter import OpenAIChatAdapter


def _make_mock_response(content: str | None) -> MagicMock:
    choice = MagicMock()
    choice.message.content = content
    response = MagicMock()
    response.choices = [choice]
    return response


def _make_adapter(mock_client: MagicMock) -> OpenAIChatAdapter:
    with patch(
        "smartcapture.cloud.openai_chat_adapter.openai.AsyncOpenAI",
        return_value=mock_client,
    ) as factory:
        adapter = OpenAIChatAdapter(
            api_key="k",
            request_timeout_seconds=30,
            resource_timeout_seconds=60,
        )
    factory.assert_called_once_with(api_key="k", base_url=None, timeout=30, max_retries=0)
    return adapter


async def _complete(adapter: OpenAIChatAdapter) -> str:
    return await adapter.create_vision_completion(
        model="m", temperature=0.2, prompt="describe", image=b"img"
    )


class TestOpenAIChatAdapter:
    async def test_returns_content_and_sends_image(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(
            return_value=_make_mock_response('{"summary": "ok"}')
        )
        adapter = _make_adapter(mock_client)

        content = await _complete(adapter)

        assert content == '{"summary": "ok"}'
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        parts = kwargs["messages"][0]["content"]
        assert parts[0] == {"type": "text", "text": "describe"}
        assert parts[1]["image_url"]["url"] == "data:image/jpeg;base64,aW1n"
        assert kwargs["response_format"] == {"type": "json_object"}

    async def test_empty_content_raises(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_make_mock_response(None))
        adapter = _make_adapter(mock_client)
        with pytest.raises(CloudClientError, match="empty response"):
            await _complete(adapter)

    async def test_no_choices_raises(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(return_value=MagicMock(choices=[]))
        adapter = _make_adapter(mock_client)
        with pytest.raises(CloudClientError, match="no choices"):
            await _complete(adapter)

    async def test_connection_error_is_network_unavailable(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=MagicMock())
        )
        adapter = _make_adapter(mock_client)
        with pytest.raises(NetworkUnavailableError, match="network error"):
            await _complete(adapter)

    async def test_timeout_is_network_unavailable(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=httpx.TimeoutException("timeout")
        )
        adapter = _make_adapter(mock_client)
        with pytest.raises(NetworkUnavailableError):
            await _complete(adapter)

    async def test_status_error_keeps_status_code(self) -> None:
        request = httpx.Request("POST", "https://api.test/v1/chat/completions")
        response = httpx.Response(429, request=request)
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APIStatusError("rate limited", response=response, body=None)
        )
        adapter = _make_adapter(mock_client)
        with pytest.raises(ProviderError) as exc_info:
            await _complete(adapter)
        assert exc_info.value.status_code == 429
        assert exc_info.value.retryable is False

    async def test_other_api_error_is_generic(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APIError(message="weird", request=MagicMock(), body=None)
        )
        adapter = _make_adapter(mock_client)
        with pytest.raises(CloudClientError, match="AI provider error"):
            await _complete(adapter)

    async def test_aclose_closes_sdk_client(self) -> None:
        mock_client = MagicMock()
        mock_client.close = AsyncMock()
        adapter = _make_adapter(mock_client)
        await adapter.aclose()
        mock_client.close.assert_awaited_once()
