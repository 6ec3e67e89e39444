# observability/langfuse_client.py
# Keys and LANGFUSE_TRACING_ENABLED come from the environment (.venv/.env is loaded by shared.config).
from langfuse import get_client

import shared.config  # noqa: F401

# One client for the whole process
langfuse = get_client()
