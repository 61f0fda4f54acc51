"""Built-in runbook and incident knowledge base."""

from __future__ import annotations

from guardrailed_assistant.types import Document


def default_runbooks() -> tuple[Document, ...]:
    return (
        Document(
            id="INC-101",
            title="Redis Outage - Cache Saturation",
            body=(
                "Redis became unavailable due to memory exhaustion. Eviction was disabled. "
                "Resolution: increase memory limits and enable LRU eviction."
            ),
        ),
        Document(
            id="RUN-201",
            title="DB Connection Pool Runbook",
            body=(
                "If the app slows down, check DB connection pool. Saturated pool blocks requests. "
                "Resolution: increase pool size, investigate connection leaks."
            ),
        ),
        Document(
            id="INC-305",
            title="High CPU Usage on API Nodes",
            body=(
                "Sustained high CPU was caused by inefficient JSON serialization. "
                "Resolution: optimize serialization and cache responses."
            ),
        ),
        Document(
            id="RUN-404",
            title="Kubernetes Pod Restart Troubleshooting",
            body=(
                "Repeated pod restarts are often failing health checks or insufficient memory limits. "
                "Resolution: inspect logs, adjust resource requests/limits."
            ),
        ),
    )
