"""API routes for model serving service."""

import json
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError
from starlette.concurrency import run_in_threadpool

from ..runtime.prediction_service import PredictionService

logger = structlog.get_logger("model_serving.api")

router = APIRouter()


class PredictionRequest(BaseModel):
    """Request model for prediction endpoint."""
    features: Dict[str, Any] = Field(
        ...,
        description="Feature name to value map",
        examples=[{"sepal_length": 5.1, "sepal_width": 3.5, "petal_length": 1.4, "petal_width": 0.2}]
    )


class PredictionResponse(BaseModel):
    """Response model for prediction endpoint."""
    prediction: Any = Field(..., description="Predicted value or decoded class label")


def get_prediction_service(request: Request) -> PredictionService:
    """Get prediction service from application state."""
    return request.app.state.prediction_service


def _is_json(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


async def parse_prediction_request(request: Request) -> PredictionRequest:
    """Read and validate the JSON body of a prediction call."""
    content_type = request.headers.get("content-type", "")
    if not _is_json(content_type):
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported media type: {content_type or 'none'}"
        )

    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Malformed request body")

    try:
        return PredictionRequest.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "body"
        raise HTTPException(status_code=400, detail=f"Malformed request body: {location}: {first['msg']}")


@router.post("/predict/{model_id}", response_model=PredictionResponse)
async def predict(
    model_id: str,
    body: PredictionRequest = Depends(parse_prediction_request),
    service: PredictionService = Depends(get_prediction_service)
):
    """Score one feature map against ``model_id``.

    Model loading and scoring block, so they run on the threadpool.
    """
    prediction = await run_in_threadpool(service.predict, model_id, body.features)

    logger.info(
        "Prediction completed",
        model_id=model_id,
        feature_count=len(body.features)
    )
    return PredictionResponse(prediction=prediction)
