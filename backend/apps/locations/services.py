# apps/locations/services.py
import math


class LocationService:
    EARTH_RADIUS_KM = 6371

    @staticmethod
    def calculate_distance_km(lat1, lon1, lat2, lon2) -> float:
        """
        Great-circle distance between two points (Haversine formula), in kilometers.
        """
        lat1, lon1, lat2, lon2 = map(float, [lat1, lon1, lat2, lon2])

        dlat = math.radians(lat2 - lat1)
        dlon = math.radians(lon2 - lon1)

        a = (
            math.sin(dlat / 2) ** 2
            + math.cos(math.radians(lat1))
            * math.cos(math.radians(lat2))
            * math.sin(dlon / 2) ** 2
        )

        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
        return LocationService.EARTH_RADIUS_KM * c

    @staticmethod
    def is_within_radius(lat1, lon1, lat2, lon2, max_distance_km) -> bool:
        return LocationService.calculate_distance_km(lat1, lon1, lat2, lon2) <= max_distance_km

    @staticmethod
    def is_valid_coordinate(lat, lng) -> bool:
        try:
            lat, lng = float(lat), float(lng)
        except (TypeError, ValueError):
            return False
        return -90 <= lat <= 90 and -180 <= lng <= 180


def distance_km(lat1, lon1, lat2, lon2) -> float:
    return LocationService.calculate_distance_km(lat1, lon1, lat2, lon2)
