"""Fare tier model definition."""

from sqlalchemy import CheckConstraint, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class FareTierRecord(Base):
    """Persisted fare tier for one travel class."""

    __tablename__ = "fare_tiers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    train_class: Mapped[str] = mapped_column(String(2), nullable=False, index=True)
    distance_km: Mapped[float] = mapped_column(Float, nullable=False)
    fare: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        UniqueConstraint("train_class", "distance_km", name="uq_fare_tier_class_distance"),
        CheckConstraint("distance_km > 0", name="ck_fare_tier_distance_positive"),
        CheckConstraint("fare > 0", name="ck_fare_tier_fare_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<FareTierRecord(train_class={self.train_class}, "
            f"distance_km={self.distance_km}, fare={self.fare})>"
        )
