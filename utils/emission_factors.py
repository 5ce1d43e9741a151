# Emission factors in kg CO2e per km
# Source: UK Government GHG Conversion Factors for Company Reporting 2024 (DEFRA)
from utils.errors import InvalidInput

LONG_HAUL_THRESHOLD_KM = 3700

EMISSION_FACTORS = {
    'car': {
        'petrol': 0.171,
        'diesel': 0.160,
        'ev': 0.054,
        'hybrid': 0.120
    },
    'motorcycle': {
        'petrol': 0.103,
        'diesel': 0.103,
        'ev': 0.054
    },
    'bus': 0.104,       # local bus
    'lrt': 0.041,       # light rail / tram
    'train': 0.041,     # national rail
    'coach': 0.027,
    'ship': 0.018,      # passenger ferry
    'plane': 0.255,     # domestic / short-haul
    'plane_long': 0.139,
    'bicycle': 0,
    'walk': 0,
    'other': 0.104      # bus factor
}

# Business travel modes are picked from a flat list
TRAVEL_MODES = {
    'plane': ('plane', None),
    'plane_long': ('plane_long', None),
    'car': ('car', 'petrol'),
    'car_diesel': ('car', 'diesel'),
    'car_electric': ('car', 'ev'),
    'train': ('train', None),
    'bus': ('bus', None),
    'coach': ('coach', None),
    'ship': ('ship', None),
    'motorbike': ('motorcycle', 'petrol')
}


def _normalise(value, what):
    if not isinstance(value, str):
        raise InvalidInput(f"{what} must be a string, got {value!r}")
    return value.strip().lower()


def coefficient_for(mode, subtype=None, distance_km=None):
    """Return the kg CO2e/km factor for a mode and optional vehicle subtype.

    Flights pick the long-haul factor once the distance goes past
    LONG_HAUL_THRESHOLD_KM; exactly the threshold is still short-haul.
    """
    key = _normalise(mode, 'Travel mode')
    if key not in EMISSION_FACTORS:
        raise InvalidInput(f"Unknown travel mode '{mode}'")

    if subtype is not None and not str(subtype).strip():
        subtype = None

    factor = EMISSION_FACTORS[key]
    if isinstance(factor, dict):
        if subtype is None:
            raise InvalidInput(
                f"Travel mode '{key}' requires a vehicle type: {', '.join(sorted(factor))}"
            )
        sub = _normalise(subtype, 'Vehicle type')
        if sub not in factor:
            raise InvalidInput(f"Unknown vehicle type '{subtype}' for travel mode '{key}'")
        return factor[sub]

    if subtype is not None:
        raise InvalidInput(f"Travel mode '{key}' does not take a vehicle type")

    if key == 'plane' and distance_km is not None and distance_km > LONG_HAUL_THRESHOLD_KM:
        return EMISSION_FACTORS['plane_long']
    return factor


def resolve_travel_mode(mode):
    """Map a business travel mode onto a (mode, subtype) table key."""
    key = _normalise(mode, 'Travel mode')
    if key in TRAVEL_MODES:
        return TRAVEL_MODES[key]
    if key in EMISSION_FACTORS and not isinstance(EMISSION_FACTORS[key], dict):
        return key, None
    raise InvalidInput(f"Unknown business travel mode '{mode}'")


def factor_table():
    """Serializable view of the factors for the /modes endpoint."""
    commute = []
    for mode, factor in EMISSION_FACTORS.items():
        if isinstance(factor, dict):
            commute.append({
                'mode': mode,
                'subtypes': [{'subtype': sub, 'factor': value} for sub, value in factor.items()]
            })
        else:
            commute.append({'mode': mode, 'factor': factor})

    travel = []
    for name, (mode, subtype) in TRAVEL_MODES.items():
        travel.append({
            'mode': name,
            'factor': coefficient_for(mode, subtype)
        })

    return {
        'unit': 'kg CO2e/km',
        'long_haul_threshold_km': LONG_HAUL_THRESHOLD_KM,
        'commute': commute,
        'business_travel': travel
    }
