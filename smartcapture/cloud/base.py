from abc import ABC, abstractmethod


class BaseChatClient(ABC):
    """Contract for provider-specific multimodal chat clients."""

    @abstractmethod
    async def create_vision_completion(
        self,
        *,
        model: str,
        temperature: float,
        prompt: str,
        image: bytes,
        mime_type: str = "image/jpeg",
    ) -> str:
        """Send one prompt plus one image and return the reply text.

        Raises:
            ProviderError: on a non-success HTTP status.
            NetworkUnavailableError: if the provider cannot be reached in time.
            CloudClientError: on any other provider failure.
        """

    async def aclose(self) -> None:
        """Release the underlying HTTP connections."""
