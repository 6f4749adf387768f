"""Tests for prediction and label decoding."""

import pytest

from service_model_serving.app.errors import (
    InvalidFeatureValue,
    MissingFeature,
    ModelLoadFailure,
)
from service_model_serving.app.loaders.schema import LabelSpec
from service_model_serving.app.runtime.prediction_service import PredictionService, decode_label

from .conftest import IRIS_CLASSES, SETOSA_SAMPLE

LABEL = LabelSpec(name="species", classes=IRIS_CLASSES)


@pytest.mark.parametrize("raw, expected", [
    (0, "setosa"),
    (2, "virginica"),
    (3, 3),
    (-1, -1),
    (1.0, 1.0),
    (True, True),
    ("setosa", "setosa"),
    (None, None),
])
def test_decode_label(raw, expected):
    """Test label decoding."""
    assert decode_label(raw, LABEL) == expected


def test_decode_label_without_classes_returns_raw():
    """Labels without classes pass through."""
    assert decode_label(1, LabelSpec(name="target")) == 1


@pytest.fixture
def service(cache, metrics):
    """Prediction service over the iris cache."""
    return PredictionService(cache, metrics)


@pytest.mark.parametrize("model_id", ["iris-tree", "iris-linear"])
def test_predicts_decoded_class(service, model_id):
    """Predictions are decoded to class names."""
    assert service.predict(model_id, SETOSA_SAMPLE) == "setosa"


def test_prediction_is_idempotent(service, store):
    """Repeated predictions agree and load once."""
    results = {service.predict("iris-tree", SETOSA_SAMPLE) for _ in range(5)}
    assert results == {"setosa"}
    assert store.reads["iris-tree/model.bin"] == 1


def test_extra_features_do_not_change_result(service):
    """Undeclared features do not change the result."""
    with_extra = {**SETOSA_SAMPLE, "foo_bar": 123}
    assert service.predict("iris-tree", with_extra) == service.predict("iris-tree", SETOSA_SAMPLE)


def test_unknown_model(service):
    """Unknown models raise ModelLoadFailure."""
    with pytest.raises(ModelLoadFailure, match="Model not found: nonexistent-model"):
        service.predict("nonexistent-model", SETOSA_SAMPLE)


def test_missing_feature(service):
    """Missing features raise MissingFeature."""
    features = {k: v for k, v in SETOSA_SAMPLE.items() if k != "petal_length"}
    with pytest.raises(MissingFeature, match="Missing feature: petal_length"):
        service.predict("iris-tree", features)


def test_invalid_feature_value(service):
    """Unparseable values raise InvalidFeatureValue."""
    with pytest.raises(InvalidFeatureValue, match="Invalid value for feature: sepal_length"):
        service.predict("iris-tree", {**SETOSA_SAMPLE, "sepal_length": "abc"})


def test_invalid_input_keeps_model_cached(service, cache):
    """Invalid input does not evict the model."""
    with pytest.raises(MissingFeature):
        service.predict("iris-tree", {})
    assert "iris-tree" in cache


def test_inference_outcomes_are_recorded(service, metrics):
    """Test inference metrics."""
    service.predict("iris-tree", SETOSA_SAMPLE)
    with pytest.raises(MissingFeature):
        service.predict("iris-tree", {})

    output = metrics.get_metrics()
    assert 'ml_inference_requests_total{model_id="iris-tree",outcome="success"} 1.0' in output
    assert 'ml_inference_requests_total{model_id="iris-tree",outcome="invalid_input"} 1.0' in output
