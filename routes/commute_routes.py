import math

from flask import Blueprint, current_app, jsonify

from routes.helpers import get_store, request_data, require_profile, serialize
from utils.co2_calculator import build_commute_record
from utils.emission_factors import factor_table

commute_bp = Blueprint('commute', __name__)

USER_PREFIX = '/companies/<company_id>/users/<int:user_id>'


@commute_bp.route('/modes', methods=['GET'])
def list_modes():
    return jsonify(factor_table()), 200


@commute_bp.route(f'{USER_PREFIX}/commutes', methods=['POST'])
def check_in(company_id, user_id):
    data = request_data()
    profile = require_profile(company_id, user_id)

    # The profile distance is used unless the check-in gives its own
    distance = data.get('distance_km')
    if distance in (None, ''):
        distance = profile.get('distance_km')
    if distance in (None, ''):
        return jsonify({"error": "No commute distance given and none saved in the profile"}), 400

    record = build_commute_record(
        date=data.get('date'),
        mode=data.get('mode'),
        subtype=data.get('subtype'),
        one_way_distance_km=distance,
        check_in_time=data.get('check_in_time'),
        employee_id=profile['employee_id']
    )
    record['id'] = get_store('commutes').save(company_id, user_id, record)
    current_app.logger.info(
        f"Commute {record['id']} saved for user {user_id}: {record['emissions_kg']:.2f} kg CO2e"
    )
    return jsonify(serialize(record)), 201


@commute_bp.route(f'{USER_PREFIX}/commutes', methods=['GET'])
def list_commutes(company_id, user_id):
    require_profile(company_id, user_id)
    records = get_store('commutes').list_for_user(company_id, user_id)
    return jsonify(serialize(records)), 200


@commute_bp.route(f'{USER_PREFIX}/commutes/summary', methods=['GET'])
def commute_summary(company_id, user_id):
    require_profile(company_id, user_id)
    records = get_store('commutes').list_for_user(company_id, user_id)

    last_used = None
    if records:
        last_used = {'mode': records[0]['mode'], 'subtype': records[0].get('subtype')}

    return jsonify(serialize({
        'count': len(records),
        'total_emissions_kg': math.fsum(r['emissions_kg'] for r in records),
        'total_distance_km': math.fsum(r['round_trip_distance_km'] for r in records),
        'last_used': last_used
    })), 200


@commute_bp.route(f'{USER_PREFIX}/commutes/<int:record_id>', methods=['DELETE'])
def delete_commute(company_id, user_id, record_id):
    if not get_store('commutes').soft_delete(company_id, user_id, record_id):
        return jsonify({"error": "Record not found"}), 404
    return jsonify({"message": "Record deleted successfully"}), 200
