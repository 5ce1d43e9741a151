from flask import Blueprint, jsonify, request

from routes.helpers import get_service, parse_float, request_data, require_profile
from utils.location_search import EMPTY, RESULTS

places_bp = Blueprint('places', __name__)

SEARCH_FIELDS = ('home', 'office', 'from', 'to')


@places_bp.route('/places/search', methods=['GET'])
def search_places():
    query = request.args.get('q', '').strip()
    if not query:
        return jsonify({"error": "Query parameter 'q' is required"}), 400

    results = get_service('location_search').search(query)
    return jsonify({
        'query': query,
        'state': RESULTS if results else EMPTY,
        'results': [c.to_dict() for c in results]
    }), 200


@places_bp.route('/companies/<company_id>/users/<int:user_id>/places/sessions/<field>', methods=['POST'])
def submit_search(company_id, user_id, field):
    """Debounced search for one input field; poll with GET for the outcome."""
    if field not in SEARCH_FIELDS:
        return jsonify({"error": f"Unknown search field '{field}'"}), 404
    require_profile(company_id, user_id)

    data = request_data()
    search_field = get_service('search_fields').field(company_id, user_id, field)
    token = search_field.submit(data.get('query', ''))
    return jsonify({'token': token, 'field': field}), 202


@places_bp.route('/companies/<company_id>/users/<int:user_id>/places/sessions/<field>', methods=['GET'])
def poll_search(company_id, user_id, field):
    if field not in SEARCH_FIELDS:
        return jsonify({"error": f"Unknown search field '{field}'"}), 404
    require_profile(company_id, user_id)
    return jsonify(get_service('search_fields').snapshot(company_id, user_id, field)), 200


@places_bp.route('/places/geocode', methods=['GET'])
def geocode():
    address = request.args.get('address', '').strip()
    if not address:
        return jsonify({"error": "Query parameter 'address' is required"}), 400
    return jsonify(get_service('maps').geocode(address).to_dict()), 200


@places_bp.route('/places/reverse', methods=['GET'])
def reverse_geocode():
    lat = parse_float(request.args.get('lat'), 'lat')
    lng = parse_float(request.args.get('lng'), 'lng')
    address = get_service('maps').reverse_geocode(lat, lng)
    return jsonify({'formatted_address': address, 'location': {'lat': lat, 'lng': lng}}), 200


@places_bp.route('/places/route', methods=['POST'])
def route():
    data = request_data()
    origin = data.get('origin')
    destination = data.get('destination')
    if not origin or not destination:
        return jsonify({"error": "Both origin and destination are required"}), 400

    result = get_service('maps').route(origin, destination, data.get('mode') or 'driving')
    result['distance_km'] = round(result['distance_km'], 2)
    return jsonify(result), 200
