from smartcapture.compliance.base import BaseAuditSink
from smartcapture.compliance.http_sink import HttpAuditSink
from smartcapture.compliance.log_sink import LogAuditSink
from smartcapture.config.settings import Settings


class AuditSinkFactory:
    """Creates the configured audit sink; ``none`` disables auditing."""

    @classmethod
    def create(cls, settings: Settings) -> BaseAuditSink | None:
        sink = settings.audit_sink.lower()
        if sink == "none":
            return None
        if sink == "log":
            return LogAuditSink()
        if sink == "http":
            if not settings.audit_sink_url:
                raise ValueError("AUDIT_SINK_URL is required for audit_sink=http")
            return HttpAuditSink(settings.audit_sink_url, settings.audit_sink_api_key)
        raise ValueError(f"Unknown audit sink '{sink}'. Choose from: ['http', 'log', 'none']")
