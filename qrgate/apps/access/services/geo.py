from math import atan2, cos, radians, sin, sqrt

# Mean Earth radius in metres
EARTH_RADIUS_M = 6_371_000


def distance_meters(lat_a: float, lon_a: float, lat_b: float, lon_b: float) -> float:
    """Great-circle (Haversine) distance in metres between two points given in degrees."""
    phi_a = radians(lat_a)
    phi_b = radians(lat_b)
    d_phi = radians(lat_b - lat_a)
    d_lambda = radians(lon_b - lon_a)

    h = sin(d_phi / 2) ** 2 + cos(phi_a) * cos(phi_b) * sin(d_lambda / 2) ** 2
    h = min(max(h, 0.0), 1.0)  # rounding near coincident and antipodal points
    return EARTH_RADIUS_M * 2 * atan2(sqrt(h), sqrt(1 - h))
