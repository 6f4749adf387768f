"""Tests for the model serving platform.

Unit tests run against an in-memory object store and small iris models built
on the fly. Tests under ``integration/`` need a live MinIO.
"""
