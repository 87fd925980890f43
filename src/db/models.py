from __future__ import annotations

import datetime

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Async-compatible declarative base for all ORM models."""


class Building(Base):
    __tablename__ = "buildings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    locality: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)

    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    min_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_price: Mapped[float | None] = mapped_column(Float, nullable=True)

    amenities_cohort: Mapped[int | None] = mapped_column(Integer, nullable=True)  # lifestyle tier, small integers
    google_rating: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return f"<Building(id={self.id!r}, name={self.name!r}, locality={self.locality!r})>"


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    search_radius_km: Mapped[float | None] = mapped_column(Float, nullable=True)

    max_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    lifestyle_cohort: Mapped[str | None] = mapped_column(String(10), nullable=True)  # numeric string, e.g. "3"

    updated_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<UserPreferences(user_id={self.user_id!r})>"


class UserPreferenceWeights(Base):
    __tablename__ = "user_preference_weights"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    location_weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    budget_weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    lifestyle_weight: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<UserPreferenceWeights(user_id={self.user_id!r}, location={self.location_weight}, "
            f"budget={self.budget_weight}, lifestyle={self.lifestyle_weight})>"
        )


class UserBuildingScore(Base):
    __tablename__ = "user_building_scores"
    __table_args__ = (UniqueConstraint("user_id", "building_id", name="uq_user_building_scores_user_building"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    building_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # NULL until the calculator has run for this pair (a shortlist-only row)
    location_match_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    budget_match_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    lifestyle_match_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    overall_match_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    last_calculation_time: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    shortlisted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<UserBuildingScore(user_id={self.user_id!r}, building_id={self.building_id!r}, "
            f"overall={self.overall_match_score})>"
        )
