from decimal import Decimal
from django.db import IntegrityError, transaction
from django.test import TestCase
from asgiref.sync import async_to_sync
from utils.train_helpers import TrainCatalogHelpers
from .models import Train, TrainClass


class TrainModelTest(TestCase):
    """Test cases for Train model"""

    def setUp(self):
        self.train = Train.objects.create(name="Rajdhani Express", train_type="Rajdhani", distance_km=1400)

    def test_train_number_is_generated(self):
        """Test that a 5-digit train number is assigned on save"""
        self.assertEqual(len(self.train.train_number), 5)
        self.assertTrue(self.train.train_number.isdigit())

    def test_soft_deleted_train_hidden_from_default_manager(self):
        self.train.is_active = False
        self.train.save()

        self.assertFalse(Train.objects.filter(pk=self.train.pk).exists())
        self.assertTrue(Train.all_objects.filter(pk=self.train.pk).exists())
        self.assertIn("(Inactive)", str(self.train))

    def test_class_code_unique_per_train(self):
        TrainClass.objects.create(train=self.train, class_code="3A", class_name="AC 3 Tier", fare=Decimal("1500"))
        with self.assertRaises(IntegrityError), transaction.atomic():
            TrainClass.objects.create(train=self.train, class_code="3A", class_name="Duplicate", fare=Decimal("1500"))


class TrainCatalogHelpersTest(TestCase):
    """Test cases for catalog lookups used by the processor"""

    def setUp(self):
        self.train = Train.objects.create(name="Shatabdi Express", train_type="Shatabdi")
        TrainClass.objects.create(
            train=self.train, class_code="CC", class_name="Chair Car", fare=Decimal("850"), available_seats=70
        )
        TrainClass.objects.create(
            train=self.train, class_code="EC", class_name="Executive", fare=Decimal("1700"), available_seats=20
        )

    def test_get_train_includes_inactive(self):
        Train.all_objects.filter(pk=self.train.pk).update(is_active=False)

        train = async_to_sync(TrainCatalogHelpers.get_train)(self.train.pk)

        self.assertEqual(train.pk, self.train.pk)
        self.assertFalse(train.is_active)

    def test_get_missing_train(self):
        self.assertIsNone(async_to_sync(TrainCatalogHelpers.get_train)(123456))

    def test_find_train_class_by_code(self):
        classes = async_to_sync(TrainCatalogHelpers.get_train_classes)(self.train.pk)

        self.assertEqual(len(classes), 2)
        self.assertEqual(TrainCatalogHelpers.find_train_class(classes, "ec").fare, Decimal("1700"))
        self.assertIsNone(TrainCatalogHelpers.find_train_class(classes, "SL"))
