from django.test import SimpleTestCase
from apps.locations.services import LocationService, distance_km


class LocationServiceTestCase(SimpleTestCase):
    def test_distance_calculation(self):
        # Indiranagar (12.9716, 77.6412) to Koramangala (12.9352, 77.6245) is ~4.4km
        dist = LocationService.calculate_distance_km(12.9716, 77.6412, 12.9352, 77.6245)
        self.assertAlmostEqual(dist, 4.4, delta=0.5)

    def test_same_point_is_zero(self):
        self.assertEqual(distance_km(24.7136, 46.6753, 24.7136, 46.6753), 0.0)

    def test_symmetric(self):
        a = distance_km(24.7136, 46.6753, 24.8, 46.7)
        b = distance_km(24.8, 46.7, 24.7136, 46.6753)
        self.assertAlmostEqual(a, b, places=9)

    def test_one_degree_of_latitude(self):
        # 1 degree along a meridian = R * pi / 180
        self.assertAlmostEqual(distance_km(0, 0, 1, 0), 111.195, places=2)

    def test_accepts_decimal_strings(self):
        self.assertAlmostEqual(distance_km("0", "0", "1", "0"), 111.195, places=2)

    def test_is_within_radius(self):
        self.assertTrue(LocationService.is_within_radius(12.9716, 77.6412, 12.9352, 77.6245, 17))
        self.assertFalse(LocationService.is_within_radius(12.0, 77.0, 28.0, 77.0, 17))

    def test_coordinate_bounds(self):
        self.assertTrue(LocationService.is_valid_coordinate(-90, 180))
        self.assertFalse(LocationService.is_valid_coordinate(90.5, 0))
        self.assertFalse(LocationService.is_valid_coordinate("abc", 0))
