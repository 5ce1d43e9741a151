import math

from dateutil import parser

from utils.emission_factors import coefficient_for, resolve_travel_mode
from utils.errors import InvalidInput, NotFound


def _distance(value, name='distance_km'):
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be a number")
    try:
        distance = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be a number")
    if not math.isfinite(distance) or distance <= 0:
        raise InvalidInput(f"{name} must be greater than 0")
    return distance


def _iso_date(value):
    """Normalise a YYYY-MM-DD date, rejecting anything else."""
    if not value:
        raise InvalidInput("date is required")
    try:
        return parser.isoparse(str(value)).date().isoformat()
    except (ValueError, OverflowError):
        raise InvalidInput(f"Invalid date '{value}', expected YYYY-MM-DD")


def commute_emissions(one_way_distance_km, mode, subtype=None):
    """Round-trip distance and emissions for one day of commuting.

    Emissions (kg CO2e) = distance (km) x 2 x emission factor (kg CO2e/km)
    """
    distance = _distance(one_way_distance_km, 'one_way_distance_km')
    round_trip = distance * 2
    return round_trip, round_trip * coefficient_for(mode, subtype)


def segment_emissions(distance_km, mode):
    distance = _distance(distance_km)
    base_mode, subtype = resolve_travel_mode(mode)
    return distance * coefficient_for(base_mode, subtype, distance)


def trip_totals(segments):
    """Return (total_distance_km, total_emissions_kg) for a list of segments."""
    segments = list(segments)
    total_distance = math.fsum(s['distance_km'] for s in segments)
    total_emissions = math.fsum(s['emissions_kg'] for s in segments)
    return total_distance, total_emissions


def recommended_mode(distance_km):
    if distance_km > 3700:
        return 'plane_long'
    elif distance_km > 500:
        return 'plane'
    elif distance_km > 100:
        return 'train'
    elif distance_km > 50:
        return 'coach'
    return 'car'


def build_commute_record(date, mode, one_way_distance_km, check_in_time, employee_id, subtype=None):
    date = _iso_date(date)
    round_trip, emissions = commute_emissions(one_way_distance_km, mode, subtype)
    return {
        'date': date,
        'mode': mode.strip().lower(),
        'subtype': (subtype or '').strip().lower() or None,
        'one_way_distance_km': float(one_way_distance_km),
        'round_trip_distance_km': round_trip,
        'emissions_kg': emissions,
        'check_in_time': check_in_time,
        'employee_id': employee_id
    }


def build_segment(date, mode, distance_km, from_location, to_location, purpose=None):
    date = _iso_date(date)
    if not from_location or not to_location:
        raise InvalidInput("Both from and to locations are required")
    emissions = segment_emissions(distance_km, mode)
    return {
        'date': date,
        'mode': mode.strip().lower(),
        'distance_km': float(distance_km),
        'emissions_kg': emissions,
        'from_location': from_location,
        'to_location': to_location,
        'purpose': purpose
    }


# Pending trip lifecycle

def pending_trip_add_segment(pending, segment, purpose=None):
    """Return the pending trip with segment appended, creating it if needed."""
    if pending is None:
        return {
            'id': None,
            'purpose': purpose if purpose is not None else segment.get('purpose'),
            'segments': [segment],
            'status': 'pending'
        }
    updated = dict(pending)
    updated['segments'] = list(pending['segments']) + [segment]
    return updated


def pending_trip_remove_segment(pending, segment_id):
    """Return the pending trip without the segment, or None once it is empty."""
    segments = [s for s in pending['segments'] if s.get('id') != segment_id]
    if len(segments) == len(pending['segments']):
        raise NotFound(f"Segment {segment_id} is not part of the pending trip")
    if not segments:
        return None
    updated = dict(pending)
    updated['segments'] = segments
    return updated


def complete_trip(pending):
    if not pending or not pending.get('segments'):
        raise InvalidInput("No pending travel to submit")
    total_distance, total_emissions = trip_totals(pending['segments'])
    completed = dict(pending)
    completed.update({
        'total_distance_km': total_distance,
        'total_emissions_kg': total_emissions,
        'status': 'completed'
    })
    return completed
