"""Shared libraries for the model serving platform.

Subpackages:
- ``libs.common``: configuration, logging, metrics, and tracing.
- ``libs.object_store``: object store abstractions and concrete backends.

Notes:
- Avoid service-specific logic; keep modules cohesive and broadly useful.
"""
