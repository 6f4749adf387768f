"""Model serving service package.

Layout:
- ``api``: REST endpoint for predictions.
- ``runtime``: model cache, prediction service and service-scoped helpers.
- ``adapters``: framework adapters and their registry.
- ``loaders``: schema parsing, feature vectorizing and artifact layout.

Import convenience:
- from service_model_serving.app.main import create_app
"""
