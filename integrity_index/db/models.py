"""
SQLAlchemy database models for Integrity Index.

ORM models that map to database tables with proper indexing,
constraints, and relationships. Member is the aggregate root: its
disclosures, trades and committee links cascade on delete.

Responsibility: Define database schema and ORM mappings
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import (
    String, Integer, DateTime, Boolean, Float, Text,
    ForeignKey, Index, UniqueConstraint, Column, Table,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..utils.dates import utcnow


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


committee_sectors = Table(
    "committee_sectors",
    Base.metadata,
    Column("committee_id", Integer, ForeignKey("committees.id", ondelete="CASCADE"), primary_key=True),
    Column("sector_id", Integer, ForeignKey("sectors.id", ondelete="CASCADE"), primary_key=True),
)


class MemberModel(Base):
    """
    Database model for legislators (federal MPs and provincial MPPs).

    ``integrity_rank`` stays NULL until the audit step has scored the member.
    """

    __tablename__ = "members"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    riding: Mapped[str] = mapped_column(String(200), nullable=False, default="Unknown")
    party: Mapped[str] = mapped_column(String(100), nullable=False, default="Independent")
    jurisdiction: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    chamber: Mapped[str] = mapped_column(String(50), nullable=False)
    photo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    official_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    slug: Mapped[Optional[str]] = mapped_column(String(200), nullable=True, unique=True)
    integrity_rank: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<MemberModel(id={self.id}, name={self.name})>"


class SectorModel(Base):
    """Economic sector reference row"""

    __tablename__ = "sectors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<SectorModel(id={self.id}, name={self.name})>"


class DisclosureModel(Base):
    """
    A registry declaration line for a member.

    ``created_at`` is when this row was recorded, ``disclosure_date`` is the
    event date from the registry; the gap between them is the filing delay.
    ``conflict_flag`` is true exactly when ``conflict_reason`` is set.
    """

    __tablename__ = "disclosures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="Other")
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    disclosure_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    sector_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("sectors.id", ondelete="SET NULL"),
        nullable=True
    )
    conflict_flag: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    conflict_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint('member_id', 'description', name='uq_disclosure_member_description'),
        Index('idx_disclosure_conflict', 'conflict_flag'),
    )

    def __repr__(self) -> str:
        return f"<DisclosureModel(id={self.id}, member={self.member_id})>"


class TradeTickerModel(Base):
    """A single buy/sell event of a listed security by a member"""

    __tablename__ = "trade_tickers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    symbol: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint('member_id', 'symbol', 'date', name='uq_trade_member_symbol_date'),
    )


class BillModel(Base):
    """Database model for tracked bills, keyed by bill number."""

    __tablename__ = "bills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(200), nullable=False, default="Unknown")
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    key_vote: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<BillModel(number={self.number}, key_vote={self.key_vote})>"


class CommitteeModel(Base):
    """Parliamentary committee with its associated economic sectors"""

    __tablename__ = "committees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    source_slug: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<CommitteeModel(id={self.id}, name={self.name})>"


class MemberCommitteeModel(Base):
    """Membership link between a member and a committee"""

    __tablename__ = "member_committees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    committee_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("committees.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint('member_id', 'committee_id', name='uq_member_committee'),
    )


class AssetSectorMappingModel(Base):
    """Persisted keyword extension for the sector classifier"""

    __tablename__ = "asset_sector_mappings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    keyword: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    sector_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("sectors.id", ondelete="CASCADE"),
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class AppStatusModel(Base):
    """Single-row table holding application-wide sync state (id = 1)."""

    __tablename__ = "app_status"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    last_successful_sync_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
