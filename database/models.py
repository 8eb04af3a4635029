"""Sampling platform DB models -- companies, campaigns, entries, shipments, reviews. (SQLite/PostgreSQL compatible)"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def utcnow() -> datetime:
    """Naive UTC timestamp (SQLite stores datetimes without tzinfo)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


# ─────────────────────────────────────────────
# 1. Companies (campaign sponsors)
# ─────────────────────────────────────────────
class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    email = Column(String, nullable=False, unique=True)
    contact_name = Column(String(100), nullable=False)
    contact_phone = Column(String(30), nullable=False)
    postal_code = Column(String(10), nullable=False)
    prefecture = Column(String(20), nullable=False)
    city = Column(String(100), nullable=False)
    address1 = Column(String(200), nullable=False)
    address2 = Column(String(200))
    url = Column(String(500))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    sns_links = relationship(
        "CompanySns", back_populates="company",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    campaigns = relationship(
        "Campaign", back_populates="company",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    @property
    def full_address(self) -> str:
        return f"{self.postal_code} {self.prefecture}{self.city}{self.address1}{self.address2 or ''}"


class CompanySns(Base):
    __tablename__ = "company_sns"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    sns_type = Column(String(20), nullable=False)  # twitter/facebook/instagram/tiktok/youtube/line
    sns_url = Column(String(500), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    company = relationship("Company", back_populates="sns_links")

    __table_args__ = (
        UniqueConstraint("company_id", "sns_type", name="uq_company_sns_type"),
        Index("ix_company_sns_company", "company_id"),
    )


# ─────────────────────────────────────────────
# 2. Campaigns (free-trial offers)
# ─────────────────────────────────────────────
class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(String(500))
    start_at = Column(DateTime, nullable=False)
    end_at = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default="draft")  # draft/active/closed/completed
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    company = relationship("Company", back_populates="campaigns")
    entries = relationship(
        "Entry", back_populates="campaign",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    reviews = relationship(
        "Review", back_populates="campaign",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_campaigns_company", "company_id"),
        Index("ix_campaigns_window", "start_at", "end_at"),
        Index("ix_campaigns_status", "status"),
    )


# ─────────────────────────────────────────────
# 3. Users / admins
# ─────────────────────────────────────────────
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    addresses = relationship(
        "Address", back_populates="user",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    entries = relationship(
        "Entry", back_populates="user",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    reviews = relationship(
        "Review", back_populates="user",
        cascade="all, delete-orphan", passive_deletes=True,
    )


class Admin(Base):
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class AuthSession(Base):
    """Revocable login session bound to a JWT via its ``sid`` claim."""

    __tablename__ = "auth_sessions"

    id = Column(Integer, primary_key=True)
    principal_type = Column(String(10), nullable=False)  # "user", "admin"
    principal_id = Column(Integer, nullable=False)
    session_token = Column(String(64), unique=True, nullable=False)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
    expires_at = Column(DateTime, nullable=True)
    revoked_at = Column(DateTime, nullable=True)
    revoke_reason = Column(String(100), nullable=True)

    __table_args__ = (
        Index("ix_auth_session_principal", "principal_type", "principal_id"),
        Index("ix_auth_session_token", "session_token"),
    )


# ─────────────────────────────────────────────
# 4. Shipping addresses
# ─────────────────────────────────────────────
class Address(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    postal_code = Column(String(10), nullable=False)
    prefecture = Column(String(20), nullable=False)
    city = Column(String(100), nullable=False)
    address1 = Column(String(200), nullable=False)
    address2 = Column(String(200))
    phone = Column(String(30), nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="addresses")
    shipments = relationship(
        "Shipment", back_populates="address",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_addresses_user", "user_id"),
        Index("ix_addresses_user_default", "user_id", "is_default"),
    )

    @property
    def full_address(self) -> str:
        return f"{self.postal_code} {self.prefecture}{self.city}{self.address1}{self.address2 or ''}"


# ─────────────────────────────────────────────
# 5. Entries (one per user per campaign)
# ─────────────────────────────────────────────
class Entry(Base):
    __tablename__ = "entries"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending/winner/loser/shipped/completed
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="entries")
    campaign = relationship("Campaign", back_populates="entries")
    shipment = relationship(
        "Shipment", back_populates="entry", uselist=False,
        cascade="all, delete-orphan", passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "campaign_id", name="uq_entry_user_campaign"),
        Index("ix_entries_campaign", "campaign_id"),
        Index("ix_entries_status", "status"),
    )


# ─────────────────────────────────────────────
# 6. Shipments
# ─────────────────────────────────────────────
class Shipment(Base):
    __tablename__ = "shipments"

    id = Column(Integer, primary_key=True)
    entry_id = Column(Integer, ForeignKey("entries.id", ondelete="CASCADE"), nullable=False, unique=True)
    address_id = Column(Integer, ForeignKey("addresses.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default="preparing")  # preparing/shipped/delivered/failed
    shipped_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    entry = relationship("Entry", back_populates="shipment")
    address = relationship("Address", back_populates="shipments")

    __table_args__ = (
        Index("ix_shipments_address", "address_id"),
        Index("ix_shipments_status", "status"),
        Index("ix_shipments_shipped_at", "shipped_at"),
    )


# ─────────────────────────────────────────────
# 7. Reviews (one per user per campaign)
# ─────────────────────────────────────────────
class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="reviews")
    campaign = relationship("Campaign", back_populates="reviews")

    __table_args__ = (
        UniqueConstraint("user_id", "campaign_id", name="uq_review_user_campaign"),
        Index("ix_reviews_campaign", "campaign_id"),
        Index("ix_reviews_rating", "rating"),
    )
