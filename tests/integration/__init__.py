"""Integration tests against a running MinIO.

Run with ``pytest -m integration`` against the MinIO named by ``ML_MINIO_*``; the
tests skip themselves when the configured endpoint is unreachable.
"""
