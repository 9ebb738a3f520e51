"""
Pydantic schemas for the HTTP surface.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    id_token: Optional[str] = Field(default=None, alias="idToken")
    access_token: Optional[str] = Field(default=None, alias="accessToken")

    model_config = ConfigDict(populate_by_name=True)


class SaveReviewRequest(BaseModel):
    beverage_id: str = Field(..., alias="beverageId")
    beverage_name: str = Field(..., alias="beverageName")
    rating: int
    title: str
    content: str
    image_file: Optional[Any] = Field(default=None, alias="imageFile")

    model_config = ConfigDict(populate_by_name=True)


class SaveBeverageRequest(BaseModel):
    name: str
    category: str
    alcohol_percentage: Optional[Union[float, str]] = Field(
        default=None, alias="alcoholPercentage"
    )
    manufacturer: Optional[str] = None
    description: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class LikeReviewRequest(BaseModel):
    review_id: str = Field(..., alias="reviewId")

    model_config = ConfigDict(populate_by_name=True)


class OutboundEventModel(BaseModel):
    port: str
    payload: Any = None


class IntentResponse(BaseModel):
    events: list[OutboundEventModel]


class SessionResponse(BaseModel):
    user: Optional[dict] = None


class ClientConfigResponse(BaseModel):
    firebase: dict
    sign_in: dict
