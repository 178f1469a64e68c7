"""
Domain layer package.

Contains pure logic: entities, value objects, domain services and port
interfaces. This layer has no third-party dependencies and performs
no IO.
"""
