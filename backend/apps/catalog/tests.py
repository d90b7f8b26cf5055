from decimal import Decimal
from django.test import TestCase
from apps.catalog.models import Store, Product


class StoreModelTestCase(TestCase):
    def test_has_location(self):
        located = Store.objects.create(name="Main", latitude=Decimal("24.7136"), longitude=Decimal("46.6753"))
        unlocated = Store.objects.create(name="Pop-up")
        self.assertTrue(located.has_location)
        self.assertFalse(unlocated.has_location)

    def test_products_belong_to_store(self):
        store = Store.objects.create(name="Main")
        Product.objects.create(store=store, name="Water 20L", price=Decimal("5.00"))
        self.assertEqual(store.products.count(), 1)
