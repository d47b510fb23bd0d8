from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class MotorType(Base):
    __tablename__ = "motor_types"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    brand: Mapped[str] = mapped_column(String(64))
    model: Mapped[str] = mapped_column(String(64))
    cc: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    units: Mapped[List["MotorUnit"]] = relationship(back_populates="motor_type")


class MotorUnit(Base):
    __tablename__ = "motor_units"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    type_id: Mapped[str] = mapped_column(ForeignKey("motor_types.id"))
    plate_number: Mapped[str] = mapped_column(String(16), unique=True)
    daily_rate: Mapped[int] = mapped_column(Integer)
    # AVAILABLE / BOOKED / RENTED / MAINTENANCE / OVERDUE
    status: Mapped[str] = mapped_column(String(16), default="AVAILABLE")
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    motor_type: Mapped[MotorType] = relationship(back_populates="units", lazy="joined")


class Rental(Base):
    __tablename__ = "rentals"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    renter_name: Mapped[str] = mapped_column(String(128))
    whatsapp_number: Mapped[str] = mapped_column(String(32), index=True)
    unit_id: Mapped[str] = mapped_column(ForeignKey("motor_units.id"))
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)
    start_time: Mapped[str] = mapped_column(String(5))  # HH:MM
    end_time: Mapped[str] = mapped_column(String(5))  # HH:MM
    helmets: Mapped[int] = mapped_column(Integer, default=0)
    raincoats: Mapped[int] = mapped_column(Integer, default=0)
    # PENDING / ACTIVE / FINISHED / CANCELLED / OVERDUE
    status: Mapped[str] = mapped_column(String(16))
    total_cost: Mapped[int] = mapped_column(Integer, default=0)
    penalty: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
    finished_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    unit: Mapped[MotorUnit] = relationship(lazy="joined")


Index("ix_rentals_unit_status", Rental.unit_id, Rental.status)
