"""Feature vector construction.

Turns a request's ``{name: value}`` mapping into the ordered numeric row a
model was trained on. Column order comes from the model's declared features,
never from the request. Keys the model does not declare are ignored so newer
clients can send extra fields.

Only type coercion happens here. Range checks and value encodings (one-hot,
category lookups) belong to the adapters.
"""

import math
import numbers
from typing import Any, Iterable, Mapping, Tuple

from ..errors import InvalidFeatureValue, MissingFeature
from .schema import FeatureSpec, FeatureType

_BOOLEAN_STRINGS = {"true": 1.0, "false": 0.0}


class FeatureVectorizer:
    """Coerces feature maps into ordered ``float`` tuples."""

    def vectorize(
        self,
        features: Mapping[str, Any],
        specs: Iterable[FeatureSpec]
    ) -> Tuple[float, ...]:
        """Build the feature row for ``specs`` in declared order.

        Raises
        - MissingFeature: a declared feature is absent or ``null``
        - InvalidFeatureValue: a value cannot be read as a finite number
        """
        return tuple(self._coerce(spec, features.get(spec.name)) for spec in specs)

    def _coerce(self, spec: FeatureSpec, value: Any) -> float:
        result = self._to_float(spec, value)
        # NaN and infinities parse as floats but no model can score them.
        if not math.isfinite(result):
            raise InvalidFeatureValue(spec.name, value)
        return result

    def _to_float(self, spec: FeatureSpec, value: Any) -> float:
        if value is None:
            raise MissingFeature(spec.name)

        if isinstance(value, bool):
            if spec.type is FeatureType.BOOLEAN:
                return float(value)
            raise InvalidFeatureValue(spec.name, value)

        if isinstance(value, numbers.Real):
            try:
                return float(value)
            except OverflowError:
                raise InvalidFeatureValue(spec.name, value) from None

        if spec.type is FeatureType.BOOLEAN and isinstance(value, str):
            flag = _BOOLEAN_STRINGS.get(value.strip().lower())
            if flag is not None:
                return flag

        try:
            return float(str(value))
        except ValueError:
            raise InvalidFeatureValue(spec.name, value) from None


_default_vectorizer = FeatureVectorizer()


def vectorize(features: Mapping[str, Any], specs: Iterable[FeatureSpec]) -> Tuple[float, ...]:
    """Module-level shortcut using a shared ``FeatureVectorizer``."""
    return _default_vectorizer.vectorize(features, specs)
