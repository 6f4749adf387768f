"""Model metadata documents (``schema.json``).

Every stored model ships a metadata document next to its artifact:

    {
      "framework": "sklearn",
      "model_type": "classification",
      "features": [
        {"name": "sepal_length", "type": "double"},
        ...
      ],
      "label": {"name": "species", "type": "integer",
                "classes": ["setosa", "versicolor", "virginica"]}
    }

The feature list order is the column order the model was trained on and is
kept exactly as declared. Parsed metadata is immutable.
"""

from enum import Enum
from typing import Any, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..errors import SchemaError


class FeatureType(str, Enum):
    """Declared type of an input feature."""
    DOUBLE = "double"
    INTEGER = "integer"
    STRING = "string"
    BOOLEAN = "boolean"
    CATEGORICAL = "categorical"


class FeatureSpec(BaseModel):
    """One declared input column."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(..., min_length=1)
    type: FeatureType = FeatureType.DOUBLE
    categories: Tuple[str, ...] = ()

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @field_validator("categories", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return () if value is None else value


class LabelSpec(BaseModel):
    """The model's output column; ``classes`` maps class indices to names."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    type: str = "double"
    classes: Tuple[str, ...] = ()

    @field_validator("classes", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return () if value is None else value


class ModelMetadata(BaseModel):
    """Typed view over a ``schema.json`` document."""

    model_config = ConfigDict(frozen=True, extra="ignore", protected_namespaces=())

    framework: str = Field(..., min_length=1)
    model_type: Optional[str] = None
    features: Tuple[FeatureSpec, ...]
    label: LabelSpec

    @model_validator(mode="after")
    def check_unique_feature_names(self) -> "ModelMetadata":
        seen = set()
        for feature in self.features:
            if feature.name in seen:
                raise ValueError(f"duplicate feature name: {feature.name}")
            seen.add(feature.name)
        return self

    @property
    def feature_names(self) -> Tuple[str, ...]:
        return tuple(feature.name for feature in self.features)


def parse_schema(raw: Union[bytes, str]) -> ModelMetadata:
    """Decode a ``schema.json`` payload into ``ModelMetadata``.

    Raises
    - SchemaError: the payload is not JSON or does not describe a valid model
    """
    try:
        return ModelMetadata.model_validate_json(raw)
    except ValidationError as e:
        raise SchemaError(f"Invalid model schema: {e.error_count()} error(s): {e}") from e
