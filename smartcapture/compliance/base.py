from abc import ABC, abstractmethod


class BaseAuditSink(ABC):
    """Contract for the compliance audit trail."""

    @abstractmethod
    async def log_document_access(
        self,
        document_id: str,
        access_type: str,
        metadata: dict[str, object],
    ) -> str:
        """Record one access event and return its log id.

        Raises:
            AuditError: if the event could not be recorded.
        """

    async def aclose(self) -> None:
        return None
