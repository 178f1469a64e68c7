"""
Shared module package.

Contains cross-cutting concerns used across the gateway:
- Error handling and mapping
- Security middleware
- Rate limiting
- Logging configuration
"""
