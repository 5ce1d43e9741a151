import math

EARTH_RADIUS_KM = 6371.0

# Straight-line distance is stretched per mode to approximate the real route
ROUTING_FACTORS = {
    'plane': 1.0,
    'plane_long': 1.0,
    'car': 1.2,
    'motorcycle': 1.2,
    'train': 1.3,
    'bus': 1.25,
    'coach': 1.25,
    'ship': 1.5
}


def haversine_km(lat1, lon1, lat2, lon2):
    """Great-circle distance between two points in km."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def routed_distance_km(origin, destination, base_mode):
    """Estimate travel distance between two {'lat', 'lng'} points for a mode."""
    straight = haversine_km(origin['lat'], origin['lng'], destination['lat'], destination['lng'])
    return straight * ROUTING_FACTORS.get(base_mode, 1.0)


def _next_value(encoded, index):
    shift, result = 0, 0
    while True:
        chunk = ord(encoded[index]) - 63
        index += 1
        result |= (chunk & 0x1f) << shift
        shift += 5
        if chunk < 0x20:
            break
    value = ~(result >> 1) if result & 1 else result >> 1
    return value, index


def decode_polyline(encoded):
    """Decode a Google encoded polyline into a list of {'lat', 'lng'} points."""
    if not encoded:
        return []

    points = []
    index, lat, lng = 0, 0, 0
    while index < len(encoded):
        dlat, index = _next_value(encoded, index)
        dlng, index = _next_value(encoded, index)
        lat += dlat
        lng += dlng
        points.append({'lat': lat / 1e5, 'lng': lng / 1e5})
    return points
