from __future__ import annotations

import enum
from datetime import date, time

from sqlalchemy import Boolean, Date, Enum, ForeignKey, String, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin


class ProviderKind(str, enum.Enum):
    pharmacist = "pharmacist"
    doctor = "doctor"
    nutritionist = "nutritionist"


class Provider(Base, TimestampMixin):
    __tablename__ = "providers"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, unique=True)
    kind: Mapped[ProviderKind] = mapped_column(
        Enum(ProviderKind, name="provider_kind"), nullable=False
    )
    display_name: Mapped[str] = mapped_column(String(200), default="", nullable=False)
    specialization: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user = relationship("User", lazy="joined")
    slots = relationship(
        "ProviderSlot",
        back_populates="provider",
        order_by="ProviderSlot.id",
        cascade="all, delete-orphan",
    )


class ProviderSlot(Base):
    """A time window a provider offers for booking.

    Slot identity is ``(provider_id, slot_date, start_time)``. Whether the slot
    is taken is never stored here; it is derived from active bookings.
    """

    __tablename__ = "provider_slots"
    __table_args__ = (
        UniqueConstraint(
            "provider_id", "slot_date", "start_time", name="uq_provider_slots_identity"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    provider_id: Mapped[int] = mapped_column(
        ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    slot_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)

    provider = relationship("Provider", back_populates="slots")

    @property
    def key(self) -> tuple[date, time]:
        return self.slot_date, self.start_time
