"""
app/schemas/common.py

Shared response base models.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Response model serialized with camelCase keys for the map front-end.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(CamelModel):
    """
    Body returned for every failed request.
    """

    success: bool = False
    error: str


class HealthResponse(CamelModel):
    success: bool = True
    status: str = "ok"
    service: str
    version: str
    storage_backend: str
    timestamp: datetime
