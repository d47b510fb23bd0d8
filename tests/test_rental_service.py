from datetime import date, datetime, timedelta, timezone

import pytest

from motorent.core.exceptions import (
    InvalidPhoneNumberException,
    InvalidRentalPeriodException,
    InvalidRentalUpdateException,
    RentalAlreadyFinishedException,
    RentalNotFoundException,
    UnitNotFoundException,
    UnitUnavailableException,
)
from motorent.core.utils import local_now
from motorent.db.models import MotorUnit, Rental
from motorent.schemas import PriceRequest, RentalCreate, RentalUpdate


def _create_request(unit_id: str, **kwargs) -> RentalCreate:
    values = dict(
        unit_id=unit_id,
        renter_name="Siti",
        whatsapp_number="081298765432",
        start_date=date(2030, 1, 1),
        end_date=date(2030, 1, 2),
        start_time="08:00",
        end_time="10:00",
        helmets=2,
        raincoats=1,
    )
    values.update(kwargs)
    return RentalCreate(**values)


def test_calculate_price_breakdown(rental_service, motor_unit):
    response = rental_service.calculate_price(
        PriceRequest(
            unit_id=motor_unit.id,
            start_date=date(2023, 1, 1),
            end_date=date(2023, 1, 2),
            start_time="08:00",
            end_time="10:00",
        )
    )

    assert response.total_cost == 130_000
    assert response.unit.plate_number == "N 1234 AB"
    assert response.unit.brand == "Honda"
    assert response.breakdown.total_hours == 26
    assert response.breakdown.full_days == 1
    assert response.breakdown.extra_hours == 2
    assert response.breakdown.daily_amount == 100_000
    assert response.breakdown.hourly_amount == 30_000


def test_calculate_price_defaults_times(rental_service, motor_unit):
    response = rental_service.calculate_price(
        PriceRequest(unit_id=motor_unit.id, start_date=date(2023, 1, 1), end_date=date(2023, 1, 3))
    )

    assert response.breakdown.start_time == "08:00"
    assert response.breakdown.end_time == "08:00"
    assert response.total_cost == 200_000


def test_calculate_price_rejects_reversed_period(rental_service, motor_unit):
    with pytest.raises(InvalidRentalPeriodException):
        rental_service.calculate_price(
            PriceRequest(
                unit_id=motor_unit.id,
                start_date=date(2023, 1, 2),
                end_date=date(2023, 1, 1),
            )
        )

    with pytest.raises(InvalidRentalPeriodException):
        rental_service.calculate_price(
            PriceRequest(
                unit_id=motor_unit.id,
                start_date=date(2023, 1, 1),
                end_date=date(2023, 1, 1),
                start_time="10:00",
                end_time="10:00",
            )
        )


def test_calculate_price_unknown_unit(rental_service):
    with pytest.raises(UnitNotFoundException):
        rental_service.calculate_price(
            PriceRequest(unit_id="missing", start_date=date(2023, 1, 1), end_date=date(2023, 1, 2))
        )


def test_create_rental_computes_cost_and_books_unit(
    rental_service, motor_unit, db_session, whatsapp_client
):
    response = rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()
    rental_service.send_notifications()

    assert response.status == "ACTIVE"
    assert response.total_cost == 130_000
    assert response.penalty == 0
    assert response.helmets == 2

    unit = db_session.get(MotorUnit, motor_unit.id)
    assert unit.status == "BOOKED"

    whatsapp_client.send_message.assert_called_once()
    number, message = whatsapp_client.send_message.call_args.args
    assert number == "081298765432"
    assert "Rp 130.000" in message


def test_create_rental_starting_today_rents_unit(rental_service, motor_unit, db_session):
    today = local_now("Asia/Jakarta").date()
    rental_service.create_rental(
        _create_request(motor_unit.id, start_date=today, end_date=today + timedelta(days=1))
    )
    db_session.commit()

    assert db_session.get(MotorUnit, motor_unit.id).status == "RENTED"


def test_create_rental_keeps_supplied_cost(rental_service, motor_unit):
    response = rental_service.create_rental(_create_request(motor_unit.id, total_cost=99_000))

    assert response.total_cost == 99_000


def test_create_rental_rejects_overlap(rental_service, motor_unit, db_session):
    rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()

    with pytest.raises(UnitUnavailableException):
        rental_service.create_rental(
            _create_request(motor_unit.id, start_date=date(2030, 1, 2), end_date=date(2030, 1, 4))
        )


def test_create_rental_rejects_recently_returned_unit(rental_service, motor_unit, db_session):
    db_session.add(
        Rental(
            id="old",
            renter_name="Andi",
            whatsapp_number="0811",
            unit_id=motor_unit.id,
            start_date=date(2023, 1, 1),
            end_date=date(2023, 1, 2),
            start_time="08:00",
            end_time="08:00",
            status="FINISHED",
            total_cost=100_000,
            finished_at=datetime.now(timezone.utc) - timedelta(minutes=15),
        )
    )
    db_session.commit()

    with pytest.raises(UnitUnavailableException, match="just returned"):
        rental_service.create_rental(_create_request(motor_unit.id))


def test_create_rental_notification_failure_is_not_fatal(
    rental_service, motor_unit, whatsapp_client
):
    whatsapp_client.send_message.return_value = (False, "gateway down")

    response = rental_service.create_rental(_create_request(motor_unit.id))
    assert rental_service.send_notifications() == 0

    assert response.status == "ACTIVE"


def test_finish_rental_on_time(rental_service, motor_unit, db_session, whatsapp_client):
    created = rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()
    rental_service.send_notifications()
    whatsapp_client.send_message.reset_mock()

    response = rental_service.finish_rental(created.id, now=datetime(2030, 1, 2, 9, 0))
    db_session.commit()
    rental_service.send_notifications()

    assert response.status == "FINISHED"
    assert response.penalty == 0
    assert response.finished_at is not None
    assert db_session.get(MotorUnit, motor_unit.id).status == "AVAILABLE"
    # finish confirmation only
    assert whatsapp_client.send_message.call_count == 1


def test_finish_rental_late_charges_penalty(
    rental_service, motor_unit, db_session, whatsapp_client
):
    created = rental_service.create_rental(
        _create_request(
            motor_unit.id,
            start_date=date(2030, 1, 1),
            end_date=date(2030, 1, 5),
            start_time="12:00",
            end_time="12:00",
        )
    )
    db_session.commit()
    rental_service.send_notifications()
    whatsapp_client.send_message.reset_mock()

    response = rental_service.finish_rental(created.id, now=datetime(2030, 1, 6, 19, 30))
    db_session.commit()
    rental_service.send_notifications()

    assert response.penalty == 2 * motor_unit.daily_rate
    assert whatsapp_client.send_message.call_count == 2
    penalty_message = whatsapp_client.send_message.call_args.args[1]
    assert "Rp 200.000" in penalty_message


def test_finish_rental_twice_rejected(rental_service, motor_unit, db_session):
    created = rental_service.create_rental(_create_request(motor_unit.id))
    rental_service.finish_rental(created.id, now=datetime(2030, 1, 2, 9, 0))
    db_session.commit()

    with pytest.raises(RentalAlreadyFinishedException):
        rental_service.finish_rental(created.id)


def test_finish_unknown_rental(rental_service):
    with pytest.raises(RentalNotFoundException):
        rental_service.finish_rental("missing")


def test_check_overdue_marks_rental_and_unit(
    rental_service, motor_unit, db_session, whatsapp_client
):
    created = rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()
    rental_service.send_notifications()
    whatsapp_client.send_message.reset_mock()

    assert rental_service.check_overdue_rentals(now=datetime(2030, 1, 2, 10, 0)) == []

    marked = rental_service.check_overdue_rentals(now=datetime(2030, 1, 2, 10, 1))
    db_session.commit()
    rental_service.send_notifications()

    assert marked == [created.id]
    assert db_session.get(Rental, created.id).status == "OVERDUE"
    assert db_session.get(MotorUnit, motor_unit.id).status == "OVERDUE"
    whatsapp_client.send_message.assert_called_once()

    # overdue rentals can still be finished with a penalty
    response = rental_service.finish_rental(created.id, now=datetime(2030, 1, 2, 12, 0))
    assert response.penalty == 2 * 15_000


def test_delete_rental_releases_unit(rental_service, motor_unit, db_session):
    created = rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()

    rental_service.delete_rental(created.id)
    db_session.commit()

    assert db_session.get(Rental, created.id) is None
    assert db_session.get(MotorUnit, motor_unit.id).status == "AVAILABLE"

    with pytest.raises(RentalNotFoundException):
        rental_service.delete_rental(created.id)


def test_find_by_phone(rental_service, motor_unit, db_session):
    rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()

    assert len(rental_service.find_by_phone("081298765432")) == 1
    assert rental_service.find_by_phone("0800") == []

    with pytest.raises(InvalidPhoneNumberException):
        rental_service.find_by_phone("   ")


def test_reports(rental_service, motor_unit, db_session):
    created = rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()
    rental_service.finish_rental(created.id, now=datetime(2030, 1, 2, 13, 0))
    db_session.commit()

    today = local_now("Asia/Jakarta").date()
    penalty_report = rental_service.get_penalty_report(today, today)
    assert [r.id for r in penalty_report.data] == [created.id]
    assert penalty_report.total_penalty == 3 * 15_000

    facility_report = rental_service.get_facility_report(today, today)
    assert facility_report.total_helmets == 2
    assert facility_report.total_raincoats == 1

    empty = rental_service.get_penalty_report(date(2000, 1, 1), date(2000, 1, 2))
    assert empty.data == []
    assert empty.total_penalty == 0


def test_penalty_report_uses_local_days(rental_service, motor_unit, db_session):
    # 22:00 UTC on 4 Jan is 05:00 on 5 Jan in Jakarta
    db_session.add(
        Rental(
            id="late-night",
            renter_name="Budi",
            whatsapp_number="0812",
            unit_id=motor_unit.id,
            start_date=date(2023, 1, 1),
            end_date=date(2023, 1, 3),
            start_time="08:00",
            end_time="08:00",
            status="FINISHED",
            total_cost=200_000,
            penalty=100_000,
            finished_at=datetime(2023, 1, 4, 22, 0, tzinfo=timezone.utc),
        )
    )
    db_session.commit()

    report = rental_service.get_penalty_report(date(2023, 1, 5), date(2023, 1, 5))
    assert [r.id for r in report.data] == ["late-night"]
    assert report.total_penalty == 100_000
    assert report.period.start == datetime(2023, 1, 4, 17, 0, tzinfo=timezone.utc)

    previous_day = rental_service.get_penalty_report(date(2023, 1, 4), date(2023, 1, 4))
    assert previous_day.data == []


def test_finish_rental_accepts_aware_now(rental_service, motor_unit, db_session):
    created = rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()

    # 05:00 UTC is 12:00 in Jakarta, two hours after the 10:00 return
    response = rental_service.finish_rental(
        created.id, now=datetime(2030, 1, 2, 5, 0, tzinfo=timezone.utc)
    )

    assert response.penalty == 2 * 15_000


def test_check_overdue_accepts_aware_now(rental_service, motor_unit, db_session):
    created = rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()

    # 02:59 UTC is 09:59 in Jakarta
    assert rental_service.check_overdue_rentals(
        now=datetime(2030, 1, 2, 2, 59, tzinfo=timezone.utc)
    ) == []
    assert rental_service.check_overdue_rentals(
        now=datetime(2030, 1, 2, 3, 1, tzinfo=timezone.utc)
    ) == [created.id]


def test_notifications_wait_for_send(rental_service, motor_unit, db_session, whatsapp_client):
    rental_service.create_rental(_create_request(motor_unit.id))

    whatsapp_client.send_message.assert_not_called()

    db_session.commit()
    assert rental_service.send_notifications() == 1
    whatsapp_client.send_message.assert_called_once()

    # the queue is emptied after sending
    assert rental_service.send_notifications() == 0
    whatsapp_client.send_message.assert_called_once()


def test_discarded_notifications_are_never_sent(
    rental_service, motor_unit, db_session, whatsapp_client
):
    rental_service.create_rental(_create_request(motor_unit.id))
    db_session.rollback()
    rental_service.discard_notifications()

    assert rental_service.send_notifications() == 0
    whatsapp_client.send_message.assert_not_called()


def test_update_rental_recomputes_cost(rental_service, motor_unit, db_session):
    created = rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()

    response = rental_service.update_rental(
        created.id, RentalUpdate(end_date=date(2030, 1, 3), end_time="08:00")
    )
    db_session.commit()

    assert response.end_date == date(2030, 1, 3)
    assert response.end_time == "08:00"
    assert response.total_cost == 2 * motor_unit.daily_rate


def test_update_rental_keeps_supplied_cost_and_details(rental_service, motor_unit, db_session):
    created = rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()

    response = rental_service.update_rental(
        created.id,
        RentalUpdate(renter_name="Siti Aminah", helmets=0, end_date=date(2030, 1, 3), total_cost=150_000),
    )

    assert response.renter_name == "Siti Aminah"
    assert response.helmets == 0
    assert response.total_cost == 150_000


def test_update_rental_without_changes(rental_service, motor_unit, db_session):
    created = rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()

    response = rental_service.update_rental(created.id, RentalUpdate())

    assert response == created


def test_update_rental_ignores_its_own_dates(rental_service, motor_unit, db_session):
    created = rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()

    response = rental_service.update_rental(created.id, RentalUpdate(start_date=date(2029, 12, 31)))

    assert response.start_date == date(2029, 12, 31)
    assert response.total_cost == 2 * motor_unit.daily_rate + 2 * 15_000


def test_update_rental_rejects_overlap_with_other_rental(
    rental_service, motor_unit, db_session
):
    first = rental_service.create_rental(_create_request(motor_unit.id))
    second = rental_service.create_rental(
        _create_request(motor_unit.id, start_date=date(2030, 1, 5), end_date=date(2030, 1, 6))
    )
    db_session.commit()

    with pytest.raises(UnitUnavailableException):
        rental_service.update_rental(second.id, RentalUpdate(start_date=date(2030, 1, 2)))

    with pytest.raises(InvalidRentalPeriodException):
        rental_service.update_rental(first.id, RentalUpdate(end_date=date(2029, 12, 1)))


def test_update_rental_cannot_move_active_rental(rental_service, motor_unit, db_session):
    other = MotorUnit(
        id="other-unit",
        type_id=motor_unit.type_id,
        plate_number="N 9999 ZZ",
        daily_rate=80_000,
        status="AVAILABLE",
    )
    db_session.add(other)
    created = rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()

    with pytest.raises(InvalidRentalUpdateException):
        rental_service.update_rental(created.id, RentalUpdate(unit_id=other.id))


def test_update_rental_moves_overdue_rental_to_other_unit(
    rental_service, motor_unit, db_session
):
    other = MotorUnit(
        id="other-unit",
        type_id=motor_unit.type_id,
        plate_number="N 9999 ZZ",
        daily_rate=80_000,
        status="AVAILABLE",
    )
    db_session.add(other)
    created = rental_service.create_rental(_create_request(motor_unit.id))
    rental_service.check_overdue_rentals(now=datetime(2030, 1, 2, 11, 0))
    db_session.commit()

    response = rental_service.update_rental(created.id, RentalUpdate(unit_id=other.id))
    db_session.commit()

    assert response.unit_id == "other-unit"
    assert response.total_cost == 80_000 + 2 * 15_000
    assert db_session.get(MotorUnit, motor_unit.id).status == "AVAILABLE"
    assert db_session.get(MotorUnit, "other-unit").status == "BOOKED"


def test_update_rental_status(rental_service, motor_unit, db_session):
    created = rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()

    cancelled = rental_service.update_rental(created.id, RentalUpdate(status="CANCELLED"))
    db_session.commit()

    assert cancelled.status == "CANCELLED"
    assert db_session.get(MotorUnit, motor_unit.id).status == "AVAILABLE"


def test_update_rental_to_finished_runs_finish(rental_service, motor_unit, db_session):
    created = rental_service.create_rental(_create_request(motor_unit.id))
    db_session.commit()

    response = rental_service.update_rental(created.id, RentalUpdate(status="FINISHED"))

    assert response.status == "FINISHED"
    assert response.finished_at is not None


def test_list_rentals_filters_and_history(rental_service, motor_unit, db_session):
    first = rental_service.create_rental(_create_request(motor_unit.id))
    second = rental_service.create_rental(
        _create_request(
            motor_unit.id,
            renter_name="Agus",
            whatsapp_number="087711112222",
            start_date=date(2030, 2, 1),
            end_date=date(2030, 2, 3),
        )
    )
    rental_service.finish_rental(first.id, now=datetime(2030, 1, 2, 9, 0))
    db_session.commit()

    assert [r.id for r in rental_service.list_rentals(search="agus")] == [second.id]
    assert [r.id for r in rental_service.list_rentals(search="1111")] == [second.id]
    assert [r.id for r in rental_service.list_rentals(start_date=date(2030, 1, 15))] == [second.id]
    assert [r.id for r in rental_service.list_rentals(end_date=date(2030, 1, 31))] == [first.id]
    assert rental_service.list_rentals(unit_id="missing") == []
    assert [r.id for r in rental_service.get_history()] == [first.id]
