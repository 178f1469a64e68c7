"""
Market bounded context: domain layer.

- Outbound request / upstream response value objects
- Freshness cache service
- JSON recovery from model output
- Field-synonym tables and research snapshot bounding
"""
