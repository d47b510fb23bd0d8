from loguru import logger

from motorent.clients.whatsapp import WhatsAppClient
from motorent.core.utils import format_rupiah
from motorent.db.models import Rental
from motorent.monitoring.metrics import MetricsCollector


def _unit_label(rental: Rental) -> str:
    unit = rental.unit
    if unit is None:
        return rental.unit_id
    motor_type = unit.motor_type
    if motor_type is None:
        return unit.plate_number
    return f"{motor_type.brand} {motor_type.model} ({unit.plate_number})"


def booking_message(rental: Rental) -> str:
    return (
        f"Halo {rental.renter_name},\n\n"
        f"Pemesanan sewa motor Anda telah dikonfirmasi.\n"
        f"Motor: {_unit_label(rental)}\n"
        f"Mulai: {rental.start_date:%d-%m-%Y} {rental.start_time}\n"
        f"Selesai: {rental.end_date:%d-%m-%Y} {rental.end_time}\n"
        f"Total biaya: {format_rupiah(rental.total_cost)}\n\n"
        f"Terima kasih."
    )


def finished_message(rental: Rental) -> str:
    return (
        f"Halo {rental.renter_name},\n\n"
        f"Motor {_unit_label(rental)} telah dikembalikan. "
        f"Transaksi sewa Anda selesai.\n"
        f"Total biaya: {format_rupiah(rental.total_cost + rental.penalty)}\n\n"
        f"Terima kasih telah menyewa."
    )


def penalty_message(rental: Rental) -> str:
    return (
        f"Halo {rental.renter_name},\n\n"
        f"Pengembalian motor {_unit_label(rental)} melewati batas waktu "
        f"{rental.end_date:%d-%m-%Y} {rental.end_time}.\n"
        f"Denda keterlambatan: {format_rupiah(rental.penalty)}"
    )


def overdue_message(rental: Rental) -> str:
    return (
        f"Halo {rental.renter_name},\n\n"
        f"Masa sewa motor {_unit_label(rental)} telah berakhir pada "
        f"{rental.end_date:%d-%m-%Y} {rental.end_time}. "
        f"Mohon segera kembalikan motor. Keterlambatan dikenakan denda."
    )


class NotificationService:
    def __init__(self, whatsapp_client: WhatsAppClient):
        self.whatsapp_client = whatsapp_client

    def _send(self, kind: str, rental: Rental, message: str) -> bool:
        if not self.whatsapp_client.enabled:
            MetricsCollector.record_notification(kind, "skipped")
            return False

        success, error = self.whatsapp_client.send_message(
            rental.whatsapp_number, message
        )
        MetricsCollector.record_notification(kind, "sent" if success else "failed")
        if not success:
            logger.warning(f"{kind} notification for rental {rental.id} failed: {error}")
        return success

    def notify_booking(self, rental: Rental) -> bool:
        return self._send("booking", rental, booking_message(rental))

    def notify_finished(self, rental: Rental) -> bool:
        return self._send("finished", rental, finished_message(rental))

    def notify_penalty(self, rental: Rental) -> bool:
        return self._send("penalty", rental, penalty_message(rental))

    def notify_overdue(self, rental: Rental) -> bool:
        return self._send("overdue", rental, overdue_message(rental))
