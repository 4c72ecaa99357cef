"""
Assistant Bridge - Telegram front end for a retrieval-augmented OpenAI assistant.

Provides:
- One-time provisioning of the assistant, vector store and reference files
- Streamed assistant runs folded into a single answer
- Concurrent per-message dispatch from the Telegram update feed
- OpenTelemetry tracing, structured logging and Prometheus metrics
"""

__version__ = "1.0.0"
__description__ = "Telegram bridge to an OpenAI assistant with file search"

__all__ = ["__version__"]
