"""
Business logic services.

Provides:
- Run stream aggregation
- Assistant run dispatch
- Concurrent session routing for chat updates
- One-time assistant and vector store provisioning
"""

from .aggregator import aggregate_stream
from .assistant_client import AssistantClient, build_run_request, create_openai_http_client
from .session_router import SessionRouter
from .provisioning import AssistantProvisioner, resolve_identifiers

__all__ = [
    "aggregate_stream",
    "AssistantClient",
    "build_run_request",
    "create_openai_http_client",
    "SessionRouter",
    "AssistantProvisioner",
    "resolve_identifiers"
]
