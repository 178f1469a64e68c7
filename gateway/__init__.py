"""
Market Gateway: server-side data gateway for a financial news site.

Application package root. This is a small modular service using
hexagonal architecture (ports & adapters).

Bounded contexts:
    - market: Upstream pass-through, trending cache, deal extraction,
      research summaries.

Layers:
    - domain: Pure logic, entities, ports (ABCs), errors, cache, JSON recovery.
    - application: Use cases, DTOs, orchestration.
    - infrastructure: Adapters (httpx fetcher, financial API, LLM provider).
    - interfaces: FastAPI routers, Pydantic schemas, dependency wiring.
    - shared: Cross-cutting concerns (errors, security, logging).
"""
