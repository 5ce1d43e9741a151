import math

from flask import Blueprint, current_app, jsonify

from routes.helpers import get_service, get_store, request_data, require_profile, serialize
from utils.co2_calculator import (
    build_segment,
    complete_trip,
    pending_trip_add_segment,
    pending_trip_remove_segment,
    recommended_mode,
    segment_emissions,
)
from utils.emission_factors import resolve_travel_mode
from utils.errors import NotFound
from utils.geo import haversine_km, routed_distance_km

business_travel_bp = Blueprint('business_travel', __name__)

USER_PREFIX = '/companies/<company_id>/users/<int:user_id>/business-travel'


@business_travel_bp.route(f'{USER_PREFIX}/pending', methods=['GET'])
def get_pending(company_id, user_id):
    require_profile(company_id, user_id)
    pending = get_store('trips').get_pending(company_id, user_id)
    return jsonify({'pending': serialize(pending)}), 200


@business_travel_bp.route(f'{USER_PREFIX}/pending/segments', methods=['POST'])
def add_segment(company_id, user_id):
    data = request_data()
    require_profile(company_id, user_id)

    segment = build_segment(
        date=data.get('date'),
        mode=data.get('mode'),
        distance_km=data.get('distance_km'),
        from_location=data.get('from_location'),
        to_location=data.get('to_location'),
        purpose=data.get('purpose')
    )

    trips = get_store('trips')
    pending = trips.get_pending(company_id, user_id)
    updated = pending_trip_add_segment(pending, segment)
    trip_id = pending['id'] if pending else trips.create_pending(company_id, user_id, updated['purpose'])
    trips.add_segment(trip_id, len(updated['segments']) - 1, segment)

    current_app.logger.info(
        f"Segment added to pending trip {trip_id} for user {user_id}: "
        f"{segment['distance_km']} km by {segment['mode']}"
    )
    return jsonify({
        'message': 'Travel segment added to pending trip',
        'pending': serialize(trips.get_pending(company_id, user_id))
    }), 201


@business_travel_bp.route(f'{USER_PREFIX}/pending/segments/<int:segment_id>', methods=['DELETE'])
def remove_segment(company_id, user_id, segment_id):
    trips = get_store('trips')
    pending = trips.get_pending(company_id, user_id)
    if not pending:
        raise NotFound("No pending travel")

    updated = pending_trip_remove_segment(pending, segment_id)
    if updated is None:
        trips.delete_pending(pending['id'])
    else:
        trips.remove_segment(pending['id'], segment_id)

    return jsonify({
        'message': 'Segment removed from pending trip',
        'pending': serialize(trips.get_pending(company_id, user_id))
    }), 200


@business_travel_bp.route(f'{USER_PREFIX}/pending/submit', methods=['POST'])
def submit_pending(company_id, user_id):
    trips = get_store('trips')
    completed = complete_trip(trips.get_pending(company_id, user_id))
    trips.complete(completed['id'], completed['total_distance_km'], completed['total_emissions_kg'])

    current_app.logger.info(
        f"Business trip {completed['id']} submitted for user {user_id}: "
        f"{completed['total_emissions_kg']:.2f} kg CO2e"
    )
    return jsonify(serialize(completed)), 201


@business_travel_bp.route(USER_PREFIX, methods=['GET'])
def list_trips(company_id, user_id):
    require_profile(company_id, user_id)
    records = get_store('trips').list_completed(company_id, user_id)
    return jsonify(serialize({
        'trips': records,
        'total_emissions_kg': math.fsum(r['total_emissions_kg'] for r in records)
    })), 200


@business_travel_bp.route(f'{USER_PREFIX}/<int:trip_id>', methods=['DELETE'])
def delete_trip(company_id, user_id, trip_id):
    if not get_store('trips').soft_delete(company_id, user_id, trip_id):
        return jsonify({"error": "Record not found"}), 404
    return jsonify({"message": "Record deleted successfully"}), 200


@business_travel_bp.route('/business-travel/estimate', methods=['POST'])
def estimate():
    """Estimate distance, mode and emissions between two places."""
    data = request_data()
    from_location = data.get('from_location')
    to_location = data.get('to_location')
    if not from_location or not to_location:
        return jsonify({"error": "Please select both from and to locations first"}), 400

    maps = get_service('maps')
    origin = maps.geocode(from_location)
    destination = maps.geocode(to_location)
    origin_point = {'lat': origin.lat, 'lng': origin.lng}
    destination_point = {'lat': destination.lat, 'lng': destination.lng}

    mode = data.get('mode') or recommended_mode(
        haversine_km(origin.lat, origin.lng, destination.lat, destination.lng)
    )
    base_mode, _ = resolve_travel_mode(mode)
    distance = routed_distance_km(origin_point, destination_point, base_mode)
    if distance <= 0:
        return jsonify({"error": "From and to locations are the same place"}), 400

    return jsonify(serialize({
        'from': origin.to_dict(),
        'to': destination.to_dict(),
        'mode': mode,
        'distance_km': distance,
        'emissions_kg': segment_emissions(distance, mode)
    })), 200
