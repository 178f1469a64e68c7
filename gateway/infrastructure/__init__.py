"""
Infrastructure layer package.

Adapters implementing domain ports: the httpx-based bounded fetcher,
the financial-data API client and the LLM completion client.
"""
