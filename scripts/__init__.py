"""Operational scripts.

- ``publish_model.py``: upload a ``model.bin`` and ``schema.json`` pair
  to model storage (``python -m scripts.publish_model --help``).
"""
