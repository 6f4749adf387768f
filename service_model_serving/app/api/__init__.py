"""API subpackage for the model serving service.

A single prediction route, kept as a thin layer over ``PredictionService``
so business logic stays out of transport code.
"""
