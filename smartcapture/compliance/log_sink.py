import uuid

from smartcapture.compliance.base import BaseAuditSink
from smartcapture.logging.logger import Log


class LogAuditSink(BaseAuditSink):
    """Writes audit events to the application log."""

    async def log_document_access(
        self,
        document_id: str,
        access_type: str,
        metadata: dict[str, object],
    ) -> str:
        log_id = str(uuid.uuid4())
        Log.info(
            "Document access audited",
            audit_log_id=log_id,
            document_id=document_id,
            access_type=access_type,
            **metadata,
        )
        return log_id
