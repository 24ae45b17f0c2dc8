import asyncio
import logging
from datetime import timedelta
from asgiref.sync import async_to_sync
from django.db import IntegrityError, transaction
from django.utils import timezone
from bookingsystem.models import Booking, Passenger
from payment.services import create_payment_reminder
from scheduler.models import ScheduledBooking, ScheduledPassenger
from utils.booking_helpers import BookingHelpers
from utils.train_helpers import TrainCatalogHelpers
from utils.notification_helpers import NotificationHelpers
from utils.validators import ScheduledBookingValidators
from utils.constants import (
    ScheduledStatus, ScheduledBookingMessage, TrainMessage, BookingMessage,
    scheduler_setting)
from exceptions.handlers import (
    NotFoundException,
    InvalidStateException,
    ScheduledBookingFailedException,
    CodeGenerationException,
)

logger = logging.getLogger("scheduler")

PNR_INSERT_ATTEMPTS = 3


def payment_due_date(booking_type, now):
    """Tatkal bookings get a shorter payment window than general ones."""
    if booking_type == "tatkal":
        hours = scheduler_setting("TATKAL_PAYMENT_WINDOW_HOURS")
    else:
        hours = scheduler_setting("PAYMENT_WINDOW_HOURS")
    return now + timedelta(hours=hours)


@transaction.atomic
def create_scheduled_booking(user, validated_data):
    """
    Persist a validated scheduled booking request with its passenger manifest.
    """
    passengers = validated_data.pop("passengers")
    scheduled_booking = ScheduledBooking.objects.create(
        user=user, status=ScheduledStatus.PENDING, **validated_data
    )
    ScheduledPassenger.objects.bulk_create(
        [
            ScheduledPassenger(scheduled_booking=scheduled_booking, position=position, **passenger)
            for position, passenger in enumerate(passengers)
        ]
    )
    logger.info(
        f"Scheduled booking created: id={scheduled_booking.pk}, user={user}, train={scheduled_booking.train_id}, "
        f"class={scheduled_booking.class_code}, at={scheduled_booking.scheduled_at.isoformat()}, passengers={len(passengers)}"
    )
    return scheduled_booking


def cancel_scheduled_booking(scheduled_booking, user):
    """
    Cancel a pending scheduled booking owned by user.
    The status check is repeated in the UPDATE so a job claimed in the
    meantime by the processor cannot be cancelled.
    """
    ScheduledBookingValidators.validate_owner(scheduled_booking, user)
    ScheduledBookingValidators.validate_cancellable(scheduled_booking)

    if not ScheduledBooking.objects.cancel(scheduled_booking.pk):
        logger.info(f"Scheduled booking {scheduled_booking.pk} left pending before it could be cancelled")
        raise InvalidStateException(ScheduledBookingMessage.CANNOT_CANCEL)

    scheduled_booking.refresh_from_db()
    logger.info(f"Scheduled booking {scheduled_booking.pk} cancelled by user {user}")
    return scheduled_booking


def process_scheduled_booking_now(scheduled_booking, user):
    """Manual trigger used by the API: ownership check, then the normal workflow."""
    ScheduledBookingValidators.validate_owner(scheduled_booking, user)
    return async_to_sync(process_scheduled_booking)(scheduled_booking.pk)


async def _mark_failed(scheduled_booking_id, reason):
    try:
        marked = await ScheduledBooking.objects.transition(
            scheduled_booking_id,
            ScheduledStatus.PROCESSING,
            ScheduledStatus.FAILED,
            failure_reason=reason[:255],
            processed_at=timezone.now(),
        )
    except Exception:
        logger.exception(f"Could not mark scheduled booking {scheduled_booking_id} as failed")
        return
    if not marked:
        logger.error(f"Scheduled booking {scheduled_booking_id} was not in processing state when marking it failed")


async def _create_booking(scheduled_booking, train_class, total_fare, now):
    # The PNR check and the insert are separate steps; a concurrent insert of
    # the same PNR surfaces as an IntegrityError on the unique column.
    for attempt in range(1, PNR_INSERT_ATTEMPTS + 1):
        pnr_number = await BookingHelpers.generate_unique_pnr()
        try:
            return await Booking.objects.acreate(
                user_id=scheduled_booking.user_id,
                train_id=scheduled_booking.train_id,
                class_code=train_class.class_code,
                journey_date=scheduled_booking.journey_date,
                pnr_number=pnr_number,
                booking_status="CONFIRMED",
                total_fare=total_fare,
                booking_type=scheduled_booking.booking_type,
                payment_status="PENDING",
                payment_due_date=payment_due_date(scheduled_booking.booking_type, now),
            )
        except IntegrityError:
            logger.warning(f"PNR {pnr_number} taken concurrently (attempt {attempt}), regenerating")
    raise CodeGenerationException(
        BookingMessage.PNR_GENERATION_FAILED.format(attempts=PNR_INSERT_ATTEMPTS)
    )


async def _execute(scheduled_booking, now):
    pk = scheduled_booking.pk

    train = await TrainCatalogHelpers.get_train(scheduled_booking.train_id)
    if train is None or not train.is_active:
        raise ScheduledBookingFailedException(
            TrainMessage.TRAIN_INACTIVE.format(train_id=scheduled_booking.train_id)
        )

    train_classes = await TrainCatalogHelpers.get_train_classes(train.pk)
    train_class = TrainCatalogHelpers.find_train_class(train_classes, scheduled_booking.class_code)
    if train_class is None:
        raise ScheduledBookingFailedException(
            TrainMessage.TRAIN_CLASS_NOT_FOUND.format(
                class_code=scheduled_booking.class_code, train_id=train.pk
            )
        )
    if train_class.available_seats <= 0:
        raise ScheduledBookingFailedException(
            TrainMessage.NO_SEATS_AVAILABLE.format(
                train_id=train.pk, class_code=train_class.class_code
            )
        )

    manifest = [p async for p in scheduled_booking.passengers.order_by("position", "id")]
    total_fare = BookingHelpers.calculate_fare(train_class.fare, len(manifest))

    booking = await _create_booking(scheduled_booking, train_class, total_fare, now)
    logger.info(f"Booking {booking.pnr_number} created for scheduled booking {pk}, fare={total_fare}")

    passengers = []
    for entry in manifest:
        passengers.append(
            await Passenger.objects.acreate(
                booking=booking,
                position=entry.position,
                name=entry.name,
                age=entry.age,
                gender=entry.gender,
                berth_preference=entry.berth_preference,
                seat_number=BookingHelpers.generate_seat_number(train_class.class_code),
                booking_status="WL",
            )
        )

    if scheduled_booking.payment_reminders_enabled:
        await create_payment_reminder(
            booking,
            frequency_hours=scheduled_booking.reminder_frequency,
            max_reminders=scheduled_booking.max_reminders,
            now=now,
        )

    completed = await ScheduledBooking.objects.transition(
        pk,
        ScheduledStatus.PROCESSING,
        ScheduledStatus.COMPLETED,
        booking=booking,
        processed_at=now,
    )
    if not completed:
        raise ScheduledBookingFailedException(
            f"Scheduled booking {pk} left the processing state before completion."
        )
    return booking, passengers


async def process_scheduled_booking(scheduled_booking_id, now=None):
    """
    Turn a pending scheduled booking into a confirmed booking.

    Claims the job (pending -> processing), looks up the class fare,
    creates the booking, its passengers and, if enabled, the first payment
    reminder, then marks the job completed and queues the confirmation
    email without waiting for it. Any failure after the claim, including
    cancellation, marks the job failed.

    Args:
        scheduled_booking_id: ScheduledBooking primary key
        now: Reference time for due dates, defaults to timezone.now()

    Returns:
        Booking: The created booking

    Raises:
        NotFoundException: If the scheduled booking does not exist
        InvalidStateException: If it is not pending or was claimed elsewhere
        ScheduledBookingFailedException: If the workflow failed (job is now failed)
    """
    scheduled_booking = await (
        ScheduledBooking.objects.select_related("user").filter(pk=scheduled_booking_id).afirst()
    )
    if scheduled_booking is None:
        logger.error(f"Scheduled booking {scheduled_booking_id} not found")
        raise NotFoundException(ScheduledBookingMessage.NOT_FOUND)

    if not scheduled_booking.is_pending:
        logger.info(
            f"Scheduled booking {scheduled_booking_id} already processed, status: {scheduled_booking.status}"
        )
        raise InvalidStateException(
            ScheduledBookingMessage.ALREADY_HANDLED.format(status=scheduled_booking.status)
        )

    if not await ScheduledBooking.objects.claim(scheduled_booking.pk):
        current = await (
            ScheduledBooking.objects.filter(pk=scheduled_booking.pk).values_list("status", flat=True).afirst()
        )
        logger.info(f"Scheduled booking {scheduled_booking_id} was claimed elsewhere, status: {current}")
        raise InvalidStateException(ScheduledBookingMessage.ALREADY_HANDLED.format(status=current))

    now = now or timezone.now()
    try:
        booking, passengers = await _execute(scheduled_booking, now)
    except ScheduledBookingFailedException as exc:
        await _mark_failed(scheduled_booking.pk, str(exc.detail))
        logger.warning(f"Scheduled booking {scheduled_booking_id} failed: {exc.detail}")
        raise
    except Exception as exc:
        reason = str(exc) or exc.__class__.__name__
        await _mark_failed(scheduled_booking.pk, reason)
        logger.exception(f"Error processing scheduled booking {scheduled_booking_id}: {reason}")
        raise ScheduledBookingFailedException(
            ScheduledBookingMessage.PROCESSING_FAILED.format(reason=reason)
        ) from exc
    except BaseException:
        # Cancelled or interrupted after the claim; do not leave the job in processing.
        await _mark_failed(scheduled_booking.pk, ScheduledBookingMessage.INTERRUPTED)
        logger.error(f"Scheduled booking {scheduled_booking_id} interrupted while processing")
        raise

    logger.info(
        f"Successfully processed scheduled booking {scheduled_booking_id}, created booking with PNR {booking.pnr_number}"
    )
    NotificationHelpers.send_booking_confirmation(scheduled_booking.user, booking, passengers)
    return booking


async def process_due_scheduled_bookings(now=None, max_concurrency=None):
    """
    Run one sweep: process every pending scheduled booking that is due.

    Jobs run concurrently up to max_concurrency. One job's failure never
    stops the others.

    Returns:
        dict: due, success_count, error_count and skipped_count
    """
    now = now or timezone.now()
    due_ids = [
        pk async for pk in ScheduledBooking.objects.due(now).values_list("pk", flat=True)
    ]
    logger.info(f"Found {len(due_ids)} scheduled bookings due for processing")

    semaphore = asyncio.Semaphore(max_concurrency or scheduler_setting("MAX_CONCURRENCY"))

    async def run(scheduled_booking_id):
        async with semaphore:
            try:
                await process_scheduled_booking(scheduled_booking_id)
            except InvalidStateException:
                return "skipped"
            except (NotFoundException, ScheduledBookingFailedException):
                return "error"
            except Exception:
                logger.exception(f"Unexpected error while processing scheduled booking {scheduled_booking_id}")
                return "error"
            return "success"

    outcomes = await asyncio.gather(*(run(pk) for pk in due_ids))

    result = {
        "due": len(due_ids),
        "success_count": outcomes.count("success"),
        "error_count": outcomes.count("error"),
        "skipped_count": outcomes.count("skipped"),
    }
    if due_ids:
        logger.info(
            f"Sweep finished: {result['success_count']} processed, {result['error_count']} failed, "
            f"{result['skipped_count']} skipped"
        )
    return result
