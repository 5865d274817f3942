"""
Adapters Layer
==============

Concrete implementations of the ports for specific technologies.

Inbound Adapters:
- FastAPI routes (in api/ layer)

Outbound Adapters:
- Redis and in-memory caches
- OpenAI-compatible LLM client
- Brave / DuckDuckGo web search
- HTTP page metadata reader
"""
