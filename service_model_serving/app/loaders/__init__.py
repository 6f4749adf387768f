"""Artifact decoding helpers.

- ``schema``: ``schema.json`` -> immutable ``ModelMetadata``
- ``vectorizer``: feature map -> ordered numeric row
- ``artifacts``: object store layout and ``publish_model``
"""
