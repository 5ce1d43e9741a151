from flask import Blueprint, current_app, jsonify

from routes.helpers import get_service, get_store, request_data, require_profile, serialize
from models.user import PROFILE_FIELDS
from utils.errors import InvalidInput

user_bp = Blueprint('user', __name__, url_prefix='/companies/<company_id>/users/<int:user_id>')


@user_bp.route('/profile', methods=['GET'])
def get_profile(company_id, user_id):
    return jsonify(serialize(require_profile(company_id, user_id))), 200


@user_bp.route('/profile', methods=['PUT'])
def update_profile(company_id, user_id):
    data = request_data()
    profile = require_profile(company_id, user_id)

    changes = {f: data[f] for f in PROFILE_FIELDS if f in data}
    if 'email' in changes:
        changes['email'] = (changes['email'] or '').strip().lower()
        if not changes['email']:
            raise InvalidInput("email cannot be empty")
        existing = get_store('users').find_by_email(company_id, changes['email'])
        if existing and existing.id != user_id:
            raise InvalidInput("Email already registered")

    if changes.get('distance_km') in (None, ''):
        changes.pop('distance_km', None)

    if 'distance_km' in changes:
        try:
            changes['distance_km'] = float(changes['distance_km'])
        except (TypeError, ValueError):
            raise InvalidInput("distance_km must be a number")
        if changes['distance_km'] <= 0:
            raise InvalidInput("distance_km must be greater than 0")
    elif 'home_location' in changes or 'office_location' in changes:
        # Locations moved without a distance: measure the driving route
        home = changes.get('home_location', profile['home_location'])
        office = changes.get('office_location', profile['office_location'])
        if home and office:
            route = get_service('maps').route(home, office, 'driving')
            changes['distance_km'] = route['distance_km']
            current_app.logger.info(
                f"Route distance for user {user_id} recalculated: {route['distance_km']} km"
            )

    get_store('users').update_profile(company_id, user_id, changes)
    return jsonify({
        'message': 'Profile updated successfully',
        'profile': serialize(require_profile(company_id, user_id))
    }), 200
