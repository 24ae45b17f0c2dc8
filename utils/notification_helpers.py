import logging
from concurrent.futures import ThreadPoolExecutor, wait
from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger("notifications")

# SMTP sends run here, off the event loop and off the ORM's sync thread.
_mail_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="booking-mail")
_pending_sends = set()


class NotificationHelpers:
    """
    Transactional emails sent on behalf of the booking processor.
    Sending is fire-and-forget: callers never wait on the mail server,
    and failures are logged, never raised.
    """

    @staticmethod
    def build_booking_confirmation(user, booking, passengers):
        passenger_lines = "\n".join(
            f"{index}. {p.name} ({p.age}, {p.gender}) - Seat: {p.seat_number or 'Will be allocated'} [{p.booking_status}]"
            for index, p in enumerate(passengers, start=1)
        )
        due = booking.payment_due_date.strftime("%d %b %Y %H:%M") if booking.payment_due_date else "-"
        subject = f"Your scheduled booking is ready - PNR {booking.pnr_number}"
        body = (
            f"Hello {user.get_username()},\n\n"
            f"Your scheduled {booking.booking_type} booking has been placed.\n\n"
            f"PNR: {booking.pnr_number}\n"
            f"Journey date: {booking.journey_date}\n"
            f"Class: {booking.class_code}\n"
            f"Total fare: {booking.total_fare}\n"
            f"Payment due by: {due}\n\n"
            f"Passengers:\n{passenger_lines}\n\n"
            "Seats stay on the waiting list until payment is completed.\n"
        )
        return subject, body

    @staticmethod
    def send_booking_confirmation(user, booking, passengers):
        """
        Queue the booking summary email for the user and return immediately.

        The message is built here, so the mail thread never touches the
        database.

        Returns:
            Future or None: The queued send, None if the user has no email
        """
        if not user.email:
            logger.info(f"No email on file for user {user.pk}; skipping confirmation for {booking.pnr_number}")
            return None

        subject, body = NotificationHelpers.build_booking_confirmation(user, booking, passengers)
        future = _mail_executor.submit(
            send_mail, subject, body, settings.DEFAULT_FROM_EMAIL, [user.email], fail_silently=False
        )
        _pending_sends.add(future)

        def _on_done(done, recipient=user.email, pnr_number=booking.pnr_number):
            _pending_sends.discard(done)
            exc = done.exception()
            if exc is not None:
                logger.error(f"Booking confirmation email failed for PNR {pnr_number}: {exc}")
            else:
                logger.info(f"Booking confirmation email sent to {recipient} for PNR {pnr_number}")

        future.add_done_callback(_on_done)
        return future

    @staticmethod
    def wait_for_pending(timeout=None):
        """
        Block until queued confirmation emails have been handed to the backend.
        Used by one-shot commands before exiting, and by tests.

        Returns:
            int: Number of sends still running when the timeout expired
        """
        _, not_done = wait(list(_pending_sends), timeout=timeout)
        if not_done:
            logger.warning(f"{len(not_done)} confirmation email(s) still pending after {timeout}s")
        return len(not_done)
