from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Tuple

from loguru import logger

from motorent.config.settings import Settings
from motorent.core.billing import (
    CalculationResult,
    assess_overdue,
    combine,
    compute_rental_cost,
)
from motorent.core.enums import OPEN_RENTAL_STATUSES, RentalStatus, UnitStatus
from motorent.core.exceptions import (
    InvalidPhoneNumberException,
    InvalidRentalPeriodException,
    InvalidRentalUpdateException,
    RentalAlreadyFinishedException,
    RentalNotFoundException,
    UnitNotFoundException,
    UnitUnavailableException,
)
from motorent.core.utils import as_utc, day_bounds, local_now, to_local, utcnow, uuid4
from motorent.db.models import MotorUnit, Rental
from motorent.db.repositories.motor import MotorUnitRepository
from motorent.db.repositories.rental import RentalRepository
from motorent.monitoring.metrics import MetricsCollector
from motorent.schemas import (
    FacilityReport,
    PenaltyReport,
    PriceBreakdown,
    PriceRequest,
    PriceResponse,
    RentalCreate,
    RentalResponse,
    RentalUpdate,
    ReportPeriod,
    UnitSummary,
)
from motorent.services.notification import NotificationService


class RentalService:
    def __init__(
        self,
        rental_repo: RentalRepository,
        unit_repo: MotorUnitRepository,
        notification_service: NotificationService,
        settings: Settings,
    ):
        self.rental_repo = rental_repo
        self.unit_repo = unit_repo
        self.notification_service = notification_service
        self._hourly_rate = settings.hourly_overdue_rate
        self._timezone = settings.timezone
        self._return_cooldown = timedelta(minutes=settings.return_cooldown_min)
        self._default_time = settings.default_rental_time
        self._outbox: List[Tuple[Callable[[Rental], bool], Rental]] = []

    def _now(self, now: Optional[datetime] = None) -> datetime:
        if now is None:
            return local_now(self._timezone)
        return to_local(now, self._timezone)

    def _queue(self, notify: Callable[[Rental], bool], rental: Rental) -> None:
        self._outbox.append((notify, rental))

    def send_notifications(self) -> int:
        """Deliver the WhatsApp messages queued by earlier calls.

        Call after the surrounding transaction commits, so customers are
        never told about changes that were rolled back.
        """
        pending, self._outbox = self._outbox, []
        sent = 0
        for notify, rental in pending:
            try:
                if notify(rental):
                    sent += 1
            except Exception as e:
                logger.error(f"Notification for rental {rental.id} failed: {e}")
        return sent

    def discard_notifications(self) -> None:
        self._outbox = []

    def _unit_status_for_start(self, start_date: date) -> str:
        if start_date == self._now().date():
            return UnitStatus.RENTED.value
        return UnitStatus.BOOKED.value

    def _get_unit(self, unit_id: str) -> MotorUnit:
        unit = self.unit_repo.get_by_id(unit_id)
        if not unit:
            logger.error(f"Motor unit {unit_id} not found")
            raise UnitNotFoundException(f"Motor unit {unit_id} not found")
        return unit

    def _get_rental(self, rental_id: str) -> Rental:
        rental = self.rental_repo.get_by_id(rental_id)
        if not rental:
            logger.error(f"Rental {rental_id} not found")
            raise RentalNotFoundException(f"Rental {rental_id} not found")
        return rental

    def _validate_period(
        self, start_date: date, end_date: date, start_time: str, end_time: str
    ) -> None:
        if combine(start_date, start_time) >= combine(end_date, end_time):
            logger.error(
                f"Invalid rental period: {start_date} {start_time} - {end_date} {end_time}"
            )
            raise InvalidRentalPeriodException(
                "Rental start must be before rental end"
            )

    def _verify_availability(
        self,
        unit_id: str,
        start_date: date,
        end_date: date,
        exclude_id: Optional[str] = None,
    ) -> None:
        overlapping = self.rental_repo.find_overlapping(
            unit_id, start_date, end_date, exclude_id
        )
        if overlapping:
            logger.error(
                f"Unit {unit_id} already booked between {start_date} and {end_date} "
                f"(rental {overlapping.id})"
            )
            raise UnitUnavailableException(
                "Motor unit is already booked for the requested dates"
            )

        recent = self.rental_repo.find_recent_return(
            unit_id, utcnow() - self._return_cooldown
        )
        if recent and recent.id != exclude_id and recent.finished_at:
            available_at = as_utc(recent.finished_at) + self._return_cooldown
            logger.error(f"Unit {unit_id} was just returned, available at {available_at}")
            raise UnitUnavailableException(
                f"Motor unit was just returned, book again after "
                f"{available_at.isoformat(timespec='minutes')}"
            )

    def _price(
        self,
        unit: MotorUnit,
        start_date: date,
        end_date: date,
        start_time: str,
        end_time: str,
    ) -> CalculationResult:
        result = compute_rental_cost(
            start_date,
            end_date,
            start_time,
            end_time,
            unit.daily_rate,
            self._hourly_rate,
        )
        logger.info(
            f"Rental cost: {result.full_days} days ({unit.daily_rate}/day) + "
            f"{result.extra_hours} hours ({self._hourly_rate}/hour) = {result.amount}"
        )
        return result

    def calculate_price(self, request: PriceRequest) -> PriceResponse:
        unit = self._get_unit(request.unit_id)

        start_time = request.start_time or self._default_time
        end_time = request.end_time or self._default_time
        self._validate_period(request.start_date, request.end_date, start_time, end_time)

        result = self._price(
            unit, request.start_date, request.end_date, start_time, end_time
        )
        MetricsCollector.record_price_calculation()

        motor_type = unit.motor_type
        return PriceResponse(
            unit=UnitSummary(
                id=unit.id,
                plate_number=unit.plate_number,
                brand=motor_type.brand if motor_type else "",
                model=motor_type.model if motor_type else "",
                cc=motor_type.cc if motor_type else 0,
                daily_rate=unit.daily_rate,
            ),
            breakdown=PriceBreakdown(
                start_date=request.start_date,
                end_date=request.end_date,
                start_time=start_time,
                end_time=end_time,
                total_hours=result.total_hours,
                full_days=result.full_days,
                extra_hours=result.extra_hours,
                daily_rate=result.daily_rate,
                hourly_rate=result.hourly_rate,
                daily_amount=result.daily_amount,
                hourly_amount=result.hourly_amount,
            ),
            total_cost=result.amount,
        )

    def create_rental(self, request: RentalCreate) -> RentalResponse:
        logger.info(
            f"Creating rental for {request.renter_name}, unit {request.unit_id}, "
            f"{request.start_date} - {request.end_date}"
        )
        unit = self._get_unit(request.unit_id)

        start_time = request.start_time or self._default_time
        end_time = request.end_time or self._default_time
        self._validate_period(request.start_date, request.end_date, start_time, end_time)
        self._verify_availability(unit.id, request.start_date, request.end_date)

        total_cost = request.total_cost
        if not total_cost:
            total_cost = self._price(
                unit, request.start_date, request.end_date, start_time, end_time
            ).amount

        unit.status = self._unit_status_for_start(request.start_date)

        rental = Rental(
            id=uuid4(),
            renter_name=request.renter_name,
            whatsapp_number=request.whatsapp_number,
            unit_id=unit.id,
            start_date=request.start_date,
            end_date=request.end_date,
            start_time=start_time,
            end_time=end_time,
            helmets=request.helmets,
            raincoats=request.raincoats,
            status=RentalStatus.ACTIVE.value,
            total_cost=total_cost,
            penalty=0,
        )
        rental.unit = unit
        self.rental_repo.create_rental(rental)

        MetricsCollector.record_rental(rental.status)
        MetricsCollector.record_rental_cost(total_cost)
        logger.info(f"Rental {rental.id} created, total cost {total_cost}")

        self._queue(self.notification_service.notify_booking, rental)
        return RentalResponse.model_validate(rental)

    def update_rental(self, rental_id: str, request: RentalUpdate) -> RentalResponse:
        rental = self._get_rental(rental_id)
        changes = request.model_dump(exclude_none=True)
        if not changes:
            return RentalResponse.model_validate(rental)
        logger.info(f"Updating rental {rental_id}: {sorted(changes)}")

        unit_changed = bool(request.unit_id) and request.unit_id != rental.unit_id
        if unit_changed and rental.status == RentalStatus.ACTIVE.value:
            logger.error(f"Cannot move active rental {rental_id} to another unit")
            raise InvalidRentalUpdateException(
                "Cannot change the motor unit of an active rental"
            )

        unit = self._get_unit(request.unit_id or rental.unit_id)
        start_date = request.start_date or rental.start_date
        end_date = request.end_date or rental.end_date
        start_time = request.start_time or rental.start_time
        end_time = request.end_time or rental.end_time

        schedule_changed = any(
            value is not None
            for value in (
                request.unit_id,
                request.start_date,
                request.end_date,
                request.start_time,
                request.end_time,
            )
        )
        if schedule_changed:
            self._validate_period(start_date, end_date, start_time, end_time)
        if request.unit_id or request.start_date or request.end_date:
            self._verify_availability(unit.id, start_date, end_date, rental.id)

        total_cost = request.total_cost
        if not total_cost and schedule_changed:
            total_cost = self._price(
                unit, start_date, end_date, start_time, end_time
            ).amount

        if unit_changed:
            self.unit_repo.set_status(rental.unit_id, UnitStatus.AVAILABLE.value)
            unit.status = self._unit_status_for_start(start_date)
        elif request.start_date and rental.status == RentalStatus.ACTIVE.value:
            unit.status = self._unit_status_for_start(start_date)

        rental.unit_id = unit.id
        rental.unit = unit
        rental.start_date = start_date
        rental.end_date = end_date
        rental.start_time = start_time
        rental.end_time = end_time
        if request.renter_name:
            rental.renter_name = request.renter_name
        if request.whatsapp_number:
            rental.whatsapp_number = request.whatsapp_number
        if request.helmets is not None:
            rental.helmets = request.helmets
        if request.raincoats is not None:
            rental.raincoats = request.raincoats
        if total_cost:
            rental.total_cost = total_cost

        new_status = request.status.value if request.status else None
        if new_status == RentalStatus.FINISHED.value:
            self.rental_repo.update_rental(rental)
            return self.finish_rental(rental_id)

        if new_status and new_status != rental.status:
            if (
                rental.status in OPEN_RENTAL_STATUSES
                and new_status not in OPEN_RENTAL_STATUSES
            ):
                unit.status = UnitStatus.AVAILABLE.value
            rental.status = new_status
            MetricsCollector.record_rental(new_status)

        self.rental_repo.update_rental(rental)
        logger.info(f"Rental {rental_id} updated, total cost {rental.total_cost}")
        return RentalResponse.model_validate(rental)

    def get_rental(self, rental_id: str) -> RentalResponse:
        return RentalResponse.model_validate(self._get_rental(rental_id))

    def list_rentals(
        self,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        unit_id: Optional[str] = None,
        search: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[RentalResponse]:
        offset = (max(page, 1) - 1) * limit
        rentals = self.rental_repo.list_rentals(
            status,
            offset,
            limit,
            unit_id=unit_id,
            search=search,
            start_date=start_date,
            end_date=end_date,
        )
        return [RentalResponse.model_validate(rental) for rental in rentals]

    def get_history(
        self,
        page: int = 1,
        limit: int = 20,
        unit_id: Optional[str] = None,
        search: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[RentalResponse]:
        """Closed and late rentals, newest first."""
        offset = (max(page, 1) - 1) * limit
        rentals = self.rental_repo.list_rentals(
            (RentalStatus.FINISHED.value, RentalStatus.OVERDUE.value),
            offset,
            limit,
            unit_id=unit_id,
            search=search,
            start_date=start_date,
            end_date=end_date,
        )
        return [RentalResponse.model_validate(rental) for rental in rentals]

    def find_by_phone(self, whatsapp_number: str) -> List[RentalResponse]:
        number = whatsapp_number.strip()
        if not number:
            raise InvalidPhoneNumberException("Phone number is required")

        rentals = self.rental_repo.find_by_phone(number)
        logger.info(f"Found {len(rentals)} rentals for phone {number}")
        return [RentalResponse.model_validate(rental) for rental in rentals]

    def finish_rental(
        self, rental_id: str, now: Optional[datetime] = None
    ) -> RentalResponse:
        rental = self._get_rental(rental_id)
        if rental.status == RentalStatus.FINISHED.value:
            logger.error(f"Rental {rental_id} already finished")
            raise RentalAlreadyFinishedException("Rental is already finished")

        unit = self._get_unit(rental.unit_id)
        overdue = assess_overdue(
            rental.end_date,
            rental.end_time,
            unit.daily_rate,
            self._now(now),
            self._hourly_rate,
        )
        logger.info(
            f"Penalty for rental {rental_id}: {overdue.full_days} days "
            f"({unit.daily_rate}/day) + {overdue.extra_hours} hours "
            f"({self._hourly_rate}/hour) = {overdue.amount}"
        )

        unit.status = UnitStatus.AVAILABLE.value
        rental.status = RentalStatus.FINISHED.value
        rental.penalty = overdue.amount
        rental.finished_at = utcnow()
        self.rental_repo.update_rental(rental)

        MetricsCollector.record_rental(rental.status)
        MetricsCollector.record_penalty(rental.penalty)
        logger.info(f"Rental {rental_id} finished, unit {unit.plate_number} available")

        self._queue(self.notification_service.notify_finished, rental)
        if rental.penalty > 0:
            self._queue(self.notification_service.notify_penalty, rental)

        return RentalResponse.model_validate(rental)

    def delete_rental(self, rental_id: str) -> None:
        rental = self._get_rental(rental_id)

        if rental.status in OPEN_RENTAL_STATUSES:
            self.unit_repo.set_status(rental.unit_id, UnitStatus.AVAILABLE.value)

        self.rental_repo.delete_rental(rental)
        MetricsCollector.record_rental("DELETED")
        logger.info(f"Rental {rental_id} deleted")

    def check_overdue_rentals(self, now: Optional[datetime] = None) -> List[str]:
        now = self._now(now)
        marked = []

        for rental in self.rental_repo.get_active_rentals():
            if now <= combine(rental.end_date, rental.end_time):
                continue

            rental.status = RentalStatus.OVERDUE.value
            self.unit_repo.set_status(rental.unit_id, UnitStatus.OVERDUE.value)
            marked.append(rental.id)
            MetricsCollector.record_rental(rental.status)
            logger.warning(
                f"Rental {rental.id} overdue since {rental.end_date} {rental.end_time}"
            )
            self._queue(self.notification_service.notify_overdue, rental)

        self.rental_repo.flush()
        return marked

    def get_penalty_report(self, start: date, end: date) -> PenaltyReport:
        period_start, period_end = day_bounds(start, end, self._timezone)
        rentals = self.rental_repo.get_penalized_between(
            as_utc(period_start), as_utc(period_end)
        )

        return PenaltyReport(
            data=[RentalResponse.model_validate(r) for r in rentals],
            total_penalty=sum(r.penalty for r in rentals),
            period=ReportPeriod(start=period_start, end=period_end),
        )

    def get_facility_report(self, start: date, end: date) -> FacilityReport:
        period_start, period_end = day_bounds(start, end, self._timezone)
        rentals = self.rental_repo.get_with_facilities_between(
            as_utc(period_start), as_utc(period_end)
        )

        return FacilityReport(
            data=[RentalResponse.model_validate(r) for r in rentals],
            total_helmets=sum(r.helmets for r in rentals),
            total_raincoats=sum(r.raincoats for r in rentals),
            period=ReportPeriod(start=period_start, end=period_end),
        )
