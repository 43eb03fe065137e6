import asyncio
import base64

import httpx
import openai

from smartcapture.cloud.base import BaseChatClient
from smartcapture.cloud.exceptions import CloudClientError, NetworkUnavailableError, ProviderError


class OpenAIChatAdapter(BaseChatClient):
    """Chat client for any OpenAI-compatible provider with image input.

    SDK-level retries are disabled; retrying is the caller's ``RetryPolicy``.
    ``request_timeout_seconds`` bounds each network operation and
    ``resource_timeout_seconds`` the whole call.
    """

    def __init__(
        self,
        *,
        api_key: str,
        request_timeout_seconds: float,
        resource_timeout_seconds: float,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=request_timeout_seconds,
            max_retries=0,
        )
        self._resource_timeout_seconds = resource_timeout_seconds

    async def create_vision_completion(
        self,
        *,
        model: str,
        temperature: float,
        prompt: str,
        image: bytes,
        mime_type: str = "image/jpeg",
    ) -> str:
        image_url = f"data:{mime_type};base64,{base64.b64encode(image).decode('ascii')}"
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=model,
                    temperature=temperature,
                    response_format={"type": "json_object"},
                    messages=[
                        {
                            "role": "user",
                            "content": [
                                {"type": "text", "text": prompt},
                                {"type": "image_url", "image_url": {"url": image_url}},
                            ],
                        }
                    ],
                ),
                timeout=self._resource_timeout_seconds,
            )
        except (
            openai.APIConnectionError,
            httpx.ConnectError,
            httpx.TimeoutException,
            asyncio.TimeoutError,
        ) as exc:
            raise NetworkUnavailableError(f"AI provider network error: {exc}") from exc
        except openai.APIStatusError as exc:
            raise ProviderError(f"AI provider API error: {exc}", exc.status_code) from exc
        except openai.APIError as exc:
            raise CloudClientError(f"AI provider error: {exc}") from exc

        if not response.choices:
            raise CloudClientError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise CloudClientError("AI returned empty response")
        return content

    async def aclose(self) -> None:
        await self._client.close()
