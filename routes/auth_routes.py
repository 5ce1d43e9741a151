from flask import Blueprint, current_app, jsonify
from werkzeug.security import check_password_hash, generate_password_hash

from routes.helpers import get_store, request_data, serialize

auth_bp = Blueprint('auth', __name__)

COMPANY_NOT_FOUND = 'Company ID not found. Please contact your administrator.'


@auth_bp.route('/register', methods=['POST'])
def register():
    data = request_data()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password')
    employee_id = (data.get('employee_id') or '').strip()
    company_id = (data.get('company_id') or '').strip()

    if not all([email, password, employee_id, company_id]):
        return jsonify({'error': 'Missing required fields'}), 400

    if not get_store('companies').exists(company_id):
        return jsonify({'error': COMPANY_NOT_FOUND}), 404

    users = get_store('users')
    if users.find_by_email(company_id, email):
        return jsonify({'error': 'Email already registered'}), 400

    distance_km = data.get('distance_km')
    if distance_km in ('', None):
        distance_km = None
    else:
        try:
            distance_km = float(distance_km)
        except (TypeError, ValueError):
            return jsonify({'error': 'distance_km must be a number'}), 400

    user_id = users.create(
        company_id=company_id,
        email=email,
        password=generate_password_hash(password),
        employee_id=employee_id,
        home_location=data.get('home_location'),
        office_location=data.get('office_location'),
        distance_km=distance_km
    )
    current_app.logger.info(f"Registered user {user_id} in company {company_id}")

    return jsonify({'message': 'Registered successfully', 'id': user_id}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request_data()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    employee_id = (data.get('employee_id') or '').strip()
    company_id = (data.get('company_id') or '').strip()

    if not get_store('companies').exists(company_id):
        return jsonify({'error': COMPANY_NOT_FOUND}), 404

    users = get_store('users')
    user = users.find_by_email(company_id, email)
    if not user or not check_password_hash(user.password, password):
        return jsonify({'error': 'Invalid email or password'}), 401

    if user.employee_id != employee_id:
        return jsonify({'error': 'Employee ID does not match. Please check your credentials.'}), 401

    users.touch_last_login(company_id, user.id)
    return jsonify(serialize(user.to_profile())), 200
