"""Core SQLAlchemy models (2.x style) for the analysis schema.

Jobs, the sponsorship offers they fill in, packages and their links to the
canonical placement options.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Naive UTC timestamp, comparable across backends."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class JobStatus(str, Enum):
    """Analysis job lifecycle: pending → analyzing → completed | error."""
    PENDING = "pending"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)

    def can_transition_to(self, target: JobStatus) -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.ANALYZING}),
    JobStatus.ANALYZING: frozenset({JobStatus.COMPLETED, JobStatus.ERROR}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.ERROR: frozenset(),
}


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class AnalysisJob(Base):
    """One document analysis request and its status."""
    __tablename__ = "analysis_jobs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    source_document_url: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=JobStatus.PENDING.value)
    error_category: Mapped[str | None] = mapped_column(String(50))
    error_message: Mapped[str | None] = mapped_column(Text)
    suggested_action: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    # Relationship
    offer: Mapped[SponsorshipOffer | None] = relationship("SponsorshipOffer", back_populates="job", uselist=False)

    __table_args__ = (
        Index("ix_analysis_jobs_status_updated", "status", "updated_at"),
    )

    @property
    def job_status(self) -> JobStatus:
        return JobStatus(self.status)


class SponsorshipOffer(Base):
    """Offer shell created at submission and filled in by the analysis."""
    __tablename__ = "sponsorship_offers"

    id: Mapped[str] = mapped_column(ForeignKey("analysis_jobs.id", ondelete="CASCADE"), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    team_profile_id: Mapped[str | None] = mapped_column(String(64), index=True)
    title: Mapped[str | None] = mapped_column(String(255))
    duration: Mapped[str | None] = mapped_column(Text)
    impact: Mapped[str | None] = mapped_column(Text)
    fundraising_goal: Mapped[float | None] = mapped_column(Float)
    supported_players: Mapped[int | None] = mapped_column(Integer)
    pdf_public_url: Mapped[str | None] = mapped_column(Text)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="pdf")
    analysis_status: Mapped[str] = mapped_column(String(20), nullable=False, default=JobStatus.PENDING.value)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    # Relationships
    job: Mapped[AnalysisJob] = relationship("AnalysisJob", back_populates="offer")
    packages: Mapped[list[SponsorshipPackage]] = relationship(
        "SponsorshipPackage",
        back_populates="offer",
        order_by="SponsorshipPackage.package_order",
    )


class SponsorshipPackage(Base):
    """A sponsorship tier of an offer."""
    __tablename__ = "sponsorship_packages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sponsorship_offer_id: Mapped[str] = mapped_column(
        ForeignKey("sponsorship_offers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[float | None] = mapped_column(Float)
    description: Mapped[str | None] = mapped_column(Text)
    benefits: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)  # Raw phrases
    display_benefits: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    package_order: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    # Relationships
    offer: Mapped[SponsorshipOffer] = relationship("SponsorshipOffer", back_populates="packages")
    placements: Mapped[list[PackagePlacement]] = relationship("PackagePlacement", back_populates="package")

    __table_args__ = (
        Index("ix_sponsorship_packages_offer_order", "sponsorship_offer_id", "package_order"),
    )


class PlacementOption(Base):
    """Canonical placement, seeded from the placement taxonomy."""
    __tablename__ = "placement_options"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    is_popular: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class PackagePlacement(Base):
    """Link between a package and a matched placement option, with match audit."""
    __tablename__ = "package_placements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    package_id: Mapped[int] = mapped_column(
        ForeignKey("sponsorship_packages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    placement_option_id: Mapped[int] = mapped_column(
        ForeignKey("placement_options.id", ondelete="CASCADE"),
        nullable=False,
    )
    raw_text: Mapped[str] = mapped_column(String(255), nullable=False)
    confidence: Mapped[str] = mapped_column(String(10), nullable=False)
    match_method: Mapped[str] = mapped_column(String(10), nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    taxonomy_version: Mapped[str] = mapped_column(String(50), nullable=False)

    # Relationships
    package: Mapped[SponsorshipPackage] = relationship("SponsorshipPackage", back_populates="placements")
    placement_option: Mapped[PlacementOption] = relationship("PlacementOption")

    __table_args__ = (
        # One link per (package, placement) even when several phrases resolve to it
        Index("ix_package_placements_package_option", "package_id", "placement_option_id", unique=True),
    )
