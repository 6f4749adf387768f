"""Tests for feature vector construction."""

import numpy as np
import pytest

from service_model_serving.app.errors import InvalidFeatureValue, MissingFeature
from service_model_serving.app.loaders.schema import FeatureSpec
from service_model_serving.app.loaders.vectorizer import FeatureVectorizer, vectorize

from .conftest import IRIS_FEATURES, SETOSA_SAMPLE

SPECS = [FeatureSpec(name=name) for name in IRIS_FEATURES]


def test_vector_follows_declared_order():
    """The vector follows declared order."""
    shuffled = dict(reversed(list(SETOSA_SAMPLE.items())))
    assert vectorize(shuffled, SPECS) == (5.1, 3.5, 1.4, 0.2)


def test_numeric_strings_and_numpy_values_are_coerced():
    """Strings and numpy values are coerced to floats."""
    features = {
        "sepal_length": "5.1",
        "sepal_width": np.float32(3.5),
        "petal_length": 1,
        "petal_width": " 0.2 ",
    }
    assert FeatureVectorizer().vectorize(features, SPECS) == pytest.approx((5.1, 3.5, 1.0, 0.2))


def test_extra_keys_are_ignored():
    """Undeclared keys are ignored."""
    features = {**SETOSA_SAMPLE, "foo_bar": 123, "note": "ignored"}
    assert vectorize(features, SPECS) == vectorize(SETOSA_SAMPLE, SPECS)


@pytest.mark.parametrize("missing", IRIS_FEATURES)
def test_missing_feature_is_named(missing):
    """Missing features are reported by name."""
    features = {k: v for k, v in SETOSA_SAMPLE.items() if k != missing}
    with pytest.raises(MissingFeature) as exc_info:
        vectorize(features, SPECS)
    assert exc_info.value.name == missing
    assert str(exc_info.value) == f"Missing feature: {missing}"


def test_null_value_counts_as_missing():
    """Null values count as missing."""
    with pytest.raises(MissingFeature):
        vectorize({**SETOSA_SAMPLE, "sepal_width": None}, SPECS)


def test_empty_map_reports_first_declared_feature():
    """An empty map reports the first declared feature."""
    with pytest.raises(MissingFeature, match="Missing feature: sepal_length"):
        vectorize({}, SPECS)


@pytest.mark.parametrize("value", ["abc", "", [1.0], {"v": 1}, True])
def test_unparseable_value_is_invalid(value):
    """Unparseable values are invalid."""
    with pytest.raises(InvalidFeatureValue) as exc_info:
        vectorize({**SETOSA_SAMPLE, "sepal_length": value}, SPECS)
    assert exc_info.value.name == "sepal_length"
    assert str(exc_info.value) == "Invalid value for feature: sepal_length"


@pytest.mark.parametrize("value, expected", [(True, 1.0), (False, 0.0), ("true", 1.0), ("FALSE", 0.0), (1, 1.0)])
def test_boolean_features_accept_flags(value, expected):
    """Boolean features accept flags."""
    spec = FeatureSpec(name="active", type="boolean")
    assert vectorize({"active": value}, [spec]) == (expected,)


@pytest.mark.parametrize("value", [
    "nan", "NaN", "inf", "-Infinity", "1e400", float("nan"), float("inf"), -float("inf"), 10 ** 400,
])
def test_non_finite_values_are_invalid(value):
    """NaN, infinities and overflowing numbers are rejected with the feature name."""
    with pytest.raises(InvalidFeatureValue) as exc_info:
        vectorize({**SETOSA_SAMPLE, "petal_length": value}, SPECS)
    assert exc_info.value.name == "petal_length"
