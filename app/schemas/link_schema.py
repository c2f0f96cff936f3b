from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from app.schemas.base import CamelModel, check_wallet_address


class LinkSubmitRequest(CamelModel):
    wallet_address: str
    proof: Dict[str, Any]

    @field_validator("wallet_address")
    @classmethod
    def valid_wallet(cls, value: str) -> str:
        return check_wallet_address(value)


class LinkSaveRequest(CamelModel):
    wallet_address: str
    handle: str = Field(..., min_length=1, max_length=64)
    session_id: str = Field(..., min_length=1)

    @field_validator("wallet_address")
    @classmethod
    def valid_wallet(cls, value: str) -> str:
        return check_wallet_address(value)

    @field_validator("handle")
    @classmethod
    def strip_at(cls, value: str) -> str:
        value = value.strip().lstrip("@")
        if not value:
            raise ValueError("handle must not be empty")
        return value


class LinkResponse(CamelModel):
    success: bool
    handle: Optional[str] = None
    link_id: Optional[int] = None
    message: Optional[str] = None


class LinkCheckOut(CamelModel):
    verified: bool
    handle: Optional[str] = None
    verified_at: Optional[datetime] = None


class LinkOut(CamelModel):
    id: int
    wallet_address: str
    handle: str = Field(validation_alias="twitter_handle")
    verified_at: datetime


class LinkListOut(CamelModel):
    count: int
    links: List[LinkOut]
