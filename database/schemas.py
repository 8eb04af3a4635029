"""Pydantic schemas -- API request/response serialization.

Timestamp rule: every datetime entering the API is normalised to naive UTC,
which is how the models store them. Status fields use the closed enums from
``domain.statuses`` so unknown values are rejected at deserialization.
"""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from domain.statuses import CampaignStatus, EntryStatus, ShipmentStatus, SnsType


def _naive_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_naive_utc)]

# SQLite INTEGER is a signed 64-bit value
MAX_ROW_ID = 2**63 - 1
RowId = Annotated[int, Field(ge=1, le=MAX_ROW_ID)]


# ── Auth ──
class RegisterIn(BaseModel):
    email: str
    password: str
    password_confirmation: str | None = None
    name: str


class LoginIn(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    id: int
    email: str
    name: str
    created_at: datetime | None
    model_config = ConfigDict(from_attributes=True)


# ── Company ──
class SnsLinkIn(BaseModel):
    sns_type: SnsType
    sns_url: str


class SnsLinkOut(BaseModel):
    id: int
    sns_type: str
    sns_url: str
    model_config = ConfigDict(from_attributes=True)


class CompanyIn(BaseModel):
    name: str
    email: str
    contact_name: str
    contact_phone: str
    postal_code: str
    prefecture: str
    city: str
    address1: str
    address2: str | None = None
    url: str | None = None
    sns_links: list[SnsLinkIn] = Field(default_factory=list)


class CompanyUpdateIn(BaseModel):
    name: str | None = None
    email: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    postal_code: str | None = None
    prefecture: str | None = None
    city: str | None = None
    address1: str | None = None
    address2: str | None = None
    url: str | None = None
    sns_links: list[SnsLinkIn] | None = None


class CompanyOut(BaseModel):
    id: int
    name: str
    email: str
    contact_name: str
    contact_phone: str
    postal_code: str
    prefecture: str
    city: str
    address1: str
    address2: str | None = None
    url: str | None = None
    full_address: str
    sns_links: list[SnsLinkOut] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# ── Campaign ──
class CampaignIn(BaseModel):
    company_id: RowId
    title: str
    description: str
    image_url: str | None = None
    start_at: UtcDatetime
    end_at: UtcDatetime
    status: CampaignStatus = CampaignStatus.DRAFT


class CampaignUpdateIn(BaseModel):
    company_id: RowId | None = None
    title: str | None = None
    description: str | None = None
    image_url: str | None = None
    start_at: UtcDatetime | None = None
    end_at: UtcDatetime | None = None
    status: CampaignStatus | None = None


class CampaignOut(BaseModel):
    id: int
    title: str
    description: str
    image_url: str | None = None
    start_at: datetime
    end_at: datetime
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# ── Entry ──
class EntryUpdateIn(BaseModel):
    status: EntryStatus


class EntryOut(BaseModel):
    id: int
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# ── Shipment ──
class ShipmentCreateIn(BaseModel):
    entry_id: RowId
    address_id: RowId


class ShipmentUpdateIn(BaseModel):
    status: ShipmentStatus | None = None
    shipped_at: UtcDatetime | None = None


class ShipmentOut(BaseModel):
    id: int
    status: str
    shipped_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# ── Review ──
class ReviewIn(BaseModel):
    rating: int | None = None
    comment: str | None = None


class ReviewOut(BaseModel):
    id: int
    rating: int
    comment: str
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# ── Address ──
class AddressIn(BaseModel):
    postal_code: str
    prefecture: str
    city: str
    address1: str
    address2: str | None = None
    phone: str
    is_default: bool = False


class AddressUpdateIn(BaseModel):
    postal_code: str | None = None
    prefecture: str | None = None
    city: str | None = None
    address1: str | None = None
    address2: str | None = None
    phone: str | None = None
    is_default: bool | None = None


class AddressOut(BaseModel):
    id: int
    postal_code: str
    prefecture: str
    city: str
    address1: str
    address2: str | None = None
    phone: str
    is_default: bool
    full_address: str
    model_config = ConfigDict(from_attributes=True)
