import asyncio
import signal
from datetime import timedelta
from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError
from scheduler.models import ScheduledBooking
from scheduler.services import process_due_scheduled_bookings, process_scheduled_booking
from scheduler.worker import run_scheduler
from utils.constants import ScheduledBookingMessage
from utils.notification_helpers import NotificationHelpers
from exceptions.handlers import (
    NotFoundException, InvalidStateException, ScheduledBookingFailedException)

MAIL_DRAIN_TIMEOUT_SECONDS = 30


class Command(BaseCommand):
    help = "Run the scheduled booking processor (continuous loop, one sweep, or a single job)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--interval", type=int, default=None,
            help="Seconds between sweeps (defaults to SCHEDULED_BOOKING['SWEEP_INTERVAL_SECONDS']).",
        )
        parser.add_argument("--once", action="store_true", help="Run a single sweep and exit.")
        parser.add_argument("--job", type=int, default=None, help="Process one scheduled booking by id now.")
        parser.add_argument(
            "--stuck", type=int, default=None, metavar="MINUTES",
            help="List jobs left in processing for more than MINUTES and exit.",
        )

    def handle(self, *args, **options):
        if options["stuck"] is not None:
            return self.list_stuck(options["stuck"])

        if options["job"] is not None:
            return self.process_job(options["job"])

        if options["once"]:
            result = async_to_sync(process_due_scheduled_bookings)()
            NotificationHelpers.wait_for_pending(MAIL_DRAIN_TIMEOUT_SECONDS)
            self.stdout.write(
                self.style.SUCCESS(
                    f"Sweep complete: due={result['due']} success={result['success_count']} "
                    f"failed={result['error_count']} skipped={result['skipped_count']}"
                )
            )
            return

        if options["interval"] is not None and options["interval"] < 1:
            raise CommandError("--interval must be at least 1 second.")
        asyncio.run(self.run_forever(options["interval"]))
        NotificationHelpers.wait_for_pending(MAIL_DRAIN_TIMEOUT_SECONDS)

    def process_job(self, job_id):
        try:
            booking = async_to_sync(process_scheduled_booking)(job_id)
        except (NotFoundException, InvalidStateException, ScheduledBookingFailedException) as exc:
            raise CommandError(str(exc.detail))
        NotificationHelpers.wait_for_pending(MAIL_DRAIN_TIMEOUT_SECONDS)
        self.stdout.write(
            self.style.SUCCESS(f"Scheduled booking {job_id} processed, PNR {booking.pnr_number}")
        )

    def list_stuck(self, minutes):
        if minutes < 0:
            raise CommandError("--stuck must not be negative.")
        stuck = ScheduledBooking.objects.stuck(timedelta(minutes=minutes))
        if not stuck.exists():
            self.stdout.write(ScheduledBookingMessage.STUCK_NONE)
            return
        for job in stuck:
            self.stdout.write(
                self.style.WARNING(
                    f"#{job.pk} user={job.user_id} train={job.train_id} class={job.class_code} "
                    f"scheduled_at={job.scheduled_at.isoformat()} processing since {job.updated_at.isoformat()}"
                )
            )

    async def run_forever(self, interval):
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop_event.set)
            except NotImplementedError:
                # Windows event loops do not support signal handlers
                pass
        await run_scheduler(stop_event, interval)
