from datetime import date, datetime
from typing import List, Optional, Sequence, Union

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from motorent.core.enums import OPEN_RENTAL_STATUSES, RentalStatus
from motorent.db.models import Rental


class RentalRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, rental_id: str) -> Optional[Rental]:
        return self.session.get(Rental, rental_id)

    def create_rental(self, rental: Rental) -> None:
        self.session.add(rental)
        self.session.flush()

    def update_rental(self, rental: Rental) -> None:
        self.session.merge(rental)
        self.session.flush()

    def flush(self) -> None:
        self.session.flush()

    def delete_rental(self, rental: Rental) -> None:
        self.session.delete(rental)
        self.session.flush()

    def list_rentals(
        self,
        status: Union[str, Sequence[str], None] = None,
        offset: int = 0,
        limit: int = 20,
        unit_id: Optional[str] = None,
        search: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Rental]:
        query = select(Rental).order_by(Rental.created_at.desc())
        if isinstance(status, str):
            query = query.where(Rental.status == status)
        elif status:
            query = query.where(Rental.status.in_(status))
        if unit_id:
            query = query.where(Rental.unit_id == unit_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Rental.renter_name.ilike(pattern),
                    Rental.whatsapp_number.ilike(pattern),
                )
            )
        if start_date:
            query = query.where(Rental.start_date >= start_date)
        if end_date:
            query = query.where(Rental.end_date <= end_date)
        query = query.offset(offset).limit(limit)
        return list(self.session.execute(query).scalars().all())

    def find_by_phone(self, whatsapp_number: str) -> List[Rental]:
        return list(
            self.session.execute(
                select(Rental)
                .where(Rental.whatsapp_number == whatsapp_number)
                .order_by(Rental.created_at.desc())
            )
            .scalars()
            .all()
        )

    def find_overlapping(
        self,
        unit_id: str,
        start_date: date,
        end_date: date,
        exclude_id: Optional[str] = None,
    ) -> Optional[Rental]:
        # Date ranges overlap inclusively: [a, b] and [c, d] meet when a <= d and c <= b
        query = select(Rental).where(
            Rental.unit_id == unit_id,
            Rental.status.in_(OPEN_RENTAL_STATUSES),
            Rental.start_date <= end_date,
            Rental.end_date >= start_date,
        )
        if exclude_id:
            query = query.where(Rental.id != exclude_id)
        return self.session.execute(query.limit(1)).scalars().first()

    def find_recent_return(self, unit_id: str, since: datetime) -> Optional[Rental]:
        return (
            self.session.execute(
                select(Rental)
                .where(
                    Rental.unit_id == unit_id,
                    Rental.status == RentalStatus.FINISHED.value,
                    Rental.finished_at >= since,
                )
                .order_by(Rental.finished_at.desc())
                .limit(1)
            )
            .scalars()
            .first()
        )

    def get_active_rentals(self) -> List[Rental]:
        return list(
            self.session.execute(
                select(Rental).where(Rental.status == RentalStatus.ACTIVE.value)
            )
            .scalars()
            .all()
        )

    def get_penalized_between(self, start: datetime, end: datetime) -> List[Rental]:
        return list(
            self.session.execute(
                select(Rental)
                .where(
                    Rental.status == RentalStatus.FINISHED.value,
                    Rental.penalty > 0,
                    Rental.finished_at >= start,
                    Rental.finished_at <= end,
                )
                .order_by(Rental.finished_at.desc())
            )
            .scalars()
            .all()
        )

    def get_with_facilities_between(
        self, start: datetime, end: datetime
    ) -> List[Rental]:
        return list(
            self.session.execute(
                select(Rental)
                .where(
                    Rental.updated_at >= start,
                    Rental.updated_at <= end,
                    or_(Rental.helmets > 0, Rental.raincoats > 0),
                )
                .order_by(Rental.updated_at.desc())
            )
            .scalars()
            .all()
        )


__all__ = ["RentalRepository"]
