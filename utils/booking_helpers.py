import random
import logging
from decimal import Decimal, InvalidOperation
from utils.constants import (
    BookingMessage, FareTable, SeatLayout, PnrFormat, scheduler_setting)
from exceptions.handlers import InvalidInputException, CodeGenerationException

logger = logging.getLogger("bookingsystem")


class BookingHelpers:
    """
    Reusable helper methods for booking operations.
    Fare calculation and identifier generation for reservations.
    """

    @staticmethod
    def calculate_fare(unit_fare, num_passengers, distance_km=0, class_code=None, booking_type="general"):
        """
        Calculate the total fare for a booking.

        The per-passenger fare is the class fare plus an optional distance
        component and, for tatkal bookings, the class's tatkal surcharge.
        With the defaults the result is unit_fare * num_passengers.

        Args:
            unit_fare: Base fare of the class for one passenger
            num_passengers (int): Number of passengers
            distance_km (int): Journey distance added at DISTANCE_RATE_PER_KM
            class_code (str): Class code used to pick the tatkal surcharge
            booking_type (str): "general" or "tatkal"

        Returns:
            Decimal: Total fare

        Raises:
            InvalidInputException: If the fare is not positive or there are no passengers
        """
        try:
            fare = Decimal(str(unit_fare))
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidInputException(BookingMessage.INVALID_FARE)
        if not fare.is_finite() or fare <= 0:
            raise InvalidInputException(BookingMessage.INVALID_FARE)
        if isinstance(num_passengers, bool) or not isinstance(num_passengers, int) or num_passengers < 1:
            raise InvalidInputException(BookingMessage.INVALID_PASSENGER_COUNT)

        per_passenger = fare
        if distance_km:
            per_passenger += Decimal(distance_km) * Decimal(FareTable.DISTANCE_RATE_PER_KM)
        if booking_type == "tatkal":
            surcharge = FareTable.TATKAL_SURCHARGES.get(
                (class_code or "").upper(), FareTable.DEFAULT_TATKAL_SURCHARGE
            )
            per_passenger += Decimal(surcharge)

        return per_passenger * num_passengers

    @staticmethod
    async def pnr_exists(pnr_number):
        from bookingsystem.models import Booking

        return await Booking.objects.filter(pnr_number=pnr_number).aexists()

    @staticmethod
    async def generate_unique_pnr(exists=None, max_attempts=None):
        """
        Generate a unique 10-digit numeric PNR.

        Draws candidates from 1000000000-9999999999 and checks each one
        once against the booking store until an unused one is found.

        Args:
            exists: async callable(pnr) -> bool, defaults to a booking lookup
            max_attempts (int): Attempts before giving up

        Returns:
            str: Unique PNR number

        Raises:
            CodeGenerationException: If every attempt collided
        """
        exists = exists or BookingHelpers.pnr_exists
        max_attempts = max_attempts or scheduler_setting("PNR_MAX_ATTEMPTS")

        for attempt in range(1, max_attempts + 1):
            pnr = str(random.randint(PnrFormat.MIN_VALUE, PnrFormat.MAX_VALUE))
            if not await exists(pnr):
                return pnr
            logger.warning(f"PNR collision on attempt {attempt}: {pnr}")

        logger.error(f"PNR generation exhausted after {max_attempts} attempts")
        raise CodeGenerationException(
            BookingMessage.PNR_GENERATION_FAILED.format(attempts=max_attempts)
        )

    @staticmethod
    def generate_seat_number(class_code):
        """
        Generate a random seat/berth label such as "B3-41".
        Cosmetic only: labels are not reserved and may repeat.
        Unknown class codes use the sleeper layout.
        """
        prefix, coaches, seats = SeatLayout.COACHES.get(
            (class_code or "").upper(), SeatLayout.COACHES[SeatLayout.DEFAULT_CLASS]
        )
        coach = random.randint(1, coaches)
        seat = random.randint(1, seats)
        return f"{prefix}{coach}-{seat}"
