from datetime import date
from decimal import Decimal
from unittest import mock
from asgiref.sync import async_to_sync
from django.contrib.auth import get_user_model
from django.test import TestCase, SimpleTestCase
from trains.models import Train
from exceptions.handlers import InvalidInputException, CodeGenerationException
from utils.booking_helpers import BookingHelpers
from utils.constants import SeatLayout
from .models import Booking, Passenger
from .serializers import BookingSerializer

User = get_user_model()


class FareCalculationTest(SimpleTestCase):
    """Test cases for BookingHelpers.calculate_fare"""

    def test_fare_is_unit_fare_times_passengers(self):
        """Test the plain fare contract"""
        self.assertEqual(BookingHelpers.calculate_fare(1050, 3), Decimal("3150"))

    def test_fare_accepts_decimal_unit_fare(self):
        self.assertEqual(
            BookingHelpers.calculate_fare(Decimal("499.50"), 2), Decimal("999.00")
        )

    def test_zero_passengers_is_rejected(self):
        """A job with passengers must never get a zero fare"""
        with self.assertRaises(InvalidInputException):
            BookingHelpers.calculate_fare(1050, 0)

    def test_non_positive_unit_fare_is_rejected(self):
        for fare in (0, -10, Decimal("-0.01")):
            with self.subTest(fare=fare):
                with self.assertRaises(InvalidInputException):
                    BookingHelpers.calculate_fare(fare, 2)

    def test_nan_and_garbage_fares_are_rejected(self):
        for fare in (float("nan"), float("inf"), "abc", None):
            with self.subTest(fare=fare):
                with self.assertRaises(InvalidInputException):
                    BookingHelpers.calculate_fare(fare, 1)

    def test_distance_component_is_added_per_passenger(self):
        # 500 + 100km * 0.20 = 520 per passenger
        self.assertEqual(
            BookingHelpers.calculate_fare(500, 2, distance_km=100), Decimal("1040.00")
        )

    def test_tatkal_surcharge_depends_on_class(self):
        self.assertEqual(
            BookingHelpers.calculate_fare(1000, 1, class_code="3A", booking_type="tatkal"),
            Decimal("1400"),
        )
        self.assertEqual(
            BookingHelpers.calculate_fare(1000, 2, class_code="XX", booking_type="tatkal"),
            Decimal("2400"),
        )

    def test_general_booking_has_no_surcharge(self):
        self.assertEqual(
            BookingHelpers.calculate_fare(1000, 1, class_code="1A", booking_type="general"),
            Decimal("1000"),
        )


class PnrGenerationTest(TestCase):
    """Test cases for unique PNR generation"""

    def test_retries_until_candidate_is_free(self):
        """Two collisions then a free code: three checks, third code returned"""
        calls = []

        async def exists(pnr):
            calls.append(pnr)
            return len(calls) <= 2

        pnr = async_to_sync(BookingHelpers.generate_unique_pnr)(exists)

        self.assertEqual(len(calls), 3)
        self.assertEqual(pnr, calls[2])

    def test_pnr_is_ten_digit_numeric(self):
        async def never(pnr):
            return False

        for _ in range(20):
            pnr = async_to_sync(BookingHelpers.generate_unique_pnr)(never)
            self.assertEqual(len(pnr), 10)
            self.assertTrue(pnr.isdigit())
            self.assertGreaterEqual(int(pnr), 1_000_000_000)

    def test_default_check_skips_existing_booking_pnr(self):
        """The default existence check looks at stored bookings"""
        user = User.objects.create_user(username="pnr_user", password="pass12345")
        train = Train.objects.create(name="Deccan Express", train_type="Express")
        Booking.objects.create(
            user=user,
            train=train,
            class_code="SL",
            journey_date=date(2026, 12, 1),
            pnr_number="1234567890",
            total_fare=Decimal("500.00"),
        )

        with mock.patch("utils.booking_helpers.random.randint", side_effect=[1234567890, 2222222222]):
            pnr = async_to_sync(BookingHelpers.generate_unique_pnr)()

        self.assertEqual(pnr, "2222222222")

    def test_gives_up_after_max_attempts(self):
        calls = []

        async def always(pnr):
            calls.append(pnr)
            return True

        with self.assertRaises(CodeGenerationException):
            async_to_sync(BookingHelpers.generate_unique_pnr)(always, max_attempts=4)
        self.assertEqual(len(calls), 4)


class SeatNumberTest(SimpleTestCase):
    """Test cases for cosmetic seat labels"""

    def test_seat_label_uses_class_layout(self):
        for class_code, (prefix, coaches, seats) in SeatLayout.COACHES.items():
            with self.subTest(class_code=class_code):
                label = BookingHelpers.generate_seat_number(class_code)
                coach_part, seat_part = label.split("-")
                self.assertTrue(coach_part.startswith(prefix))
                self.assertTrue(1 <= int(coach_part[len(prefix):]) <= coaches)
                self.assertTrue(1 <= int(seat_part) <= seats)

    def test_unknown_class_falls_back_to_sleeper(self):
        with mock.patch("utils.booking_helpers.random.randint", side_effect=[12, 72]):
            self.assertEqual(BookingHelpers.generate_seat_number("ZZ"), "S12-72")


class BookingSerializerTest(TestCase):
    """Test cases for the booking representation"""

    def test_booking_serializes_passengers_in_order(self):
        user = User.objects.create_user(username="serial_user", password="pass12345")
        train = Train.objects.create(name="Konkan Express", train_type="Express")
        booking = Booking.objects.create(
            user=user,
            train=train,
            class_code="3A",
            journey_date=date(2026, 12, 5),
            pnr_number="9876543210",
            total_fare=Decimal("2400.00"),
        )
        Passenger.objects.create(booking=booking, position=1, name="Ravi", age=40, gender="male", seat_number="B1-2")
        Passenger.objects.create(booking=booking, position=0, name="Asha", age=38, gender="female", seat_number="B1-1")

        data = BookingSerializer(booking).data

        self.assertEqual(data["pnr_number"], "9876543210")
        self.assertEqual(data["train_number"], train.train_number)
        self.assertEqual([p["name"] for p in data["passengers"]], ["Asha", "Ravi"])
        self.assertEqual(data["passengers"][0]["booking_status"], "WL")
