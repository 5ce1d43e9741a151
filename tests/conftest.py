"""
Shared fixtures: in-memory stores and a scripted maps provider.

The fakes mirror the return shapes of the MySQL stores in models/ and of
GoogleMapsClient so routes and the search cascade can run without a
database or network.
"""
import copy
import itertools

import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from models.commute_record import newest_first
from models.user import PROFILE_FIELDS, User
from utils.errors import NotFound
from utils.maps_client import PlaceCandidate


def make_place(place_id, address, lat=1.3, lng=103.8, name=None, types=None):
    return PlaceCandidate(name or address, address, place_id, lat, lng, types)


class FakeMapsClient:
    def __init__(self):
        self.places = []
        self.text_search_error = None
        self.geocodes = {}
        self.reverse = {}
        self.route_distance_km = 12.5
        self.calls = []

    def text_search(self, query, bias=None, radius=None):
        self.calls.append(('text_search', query))
        if self.text_search_error is not None:
            raise self.text_search_error
        return list(self.places)

    def geocode_all(self, address):
        self.calls.append(('geocode', address))
        result = self.geocodes.get(address, [])
        if isinstance(result, Exception):
            raise result
        return list(result)

    def geocode(self, address):
        results = self.geocode_all(address)
        if not results:
            raise NotFound(f'Address not found: "{address}"')
        return results[0]

    def reverse_geocode(self, lat, lng):
        if (lat, lng) not in self.reverse:
            raise NotFound(f"No address found at {lat},{lng}")
        return self.reverse[(lat, lng)]

    def route(self, origin, destination, mode='driving'):
        self.calls.append(('route', origin, destination, mode))
        return {
            'distance_km': self.route_distance_km,
            'distance_text': f"{self.route_distance_km} km",
            'duration_text': '25 mins',
            'path': []
        }


class FakeCompanyStore:
    def __init__(self, company_ids):
        self.company_ids = set(company_ids)

    def exists(self, company_id):
        return company_id in self.company_ids


class FakeUserStore:
    def __init__(self):
        self.users = {}
        self._ids = itertools.count(1)

    def create(self, company_id, email, password, employee_id, home_location=None,
               office_location=None, distance_km=None):
        user_id = next(self._ids)
        self.users[user_id] = User(
            id=user_id, company_id=company_id, email=email, password=password, employee_id=employee_id,
            home_location=home_location, office_location=office_location, distance_km=distance_km
        )
        return user_id

    def find_by_email(self, company_id, email):
        for user in self.users.values():
            if user.company_id == company_id and user.email == email:
                return user
        return None

    def get_profile(self, company_id, user_id):
        user = self.users.get(user_id)
        if user is None or user.company_id != company_id:
            return None
        return user.to_profile()

    def update_profile(self, company_id, user_id, changes):
        user = self.users.get(user_id)
        if user is None or user.company_id != company_id:
            return False
        for field in PROFILE_FIELDS:
            if field in changes:
                setattr(user, field, changes[field])
        return True

    def touch_last_login(self, company_id, user_id):
        self.users[user_id].last_login = 'now'


class FakeCommuteStore:
    def __init__(self):
        self.records = {}
        self._ids = itertools.count(1)

    def save(self, company_id, user_id, record):
        record_id = next(self._ids)
        stored = dict(record, id=record_id, company_id=company_id, user_id=user_id, is_deleted=False)
        self.records[record_id] = stored
        return record_id

    def list_for_user(self, company_id, user_id):
        visible = [
            {k: v for k, v in r.items() if k not in ('company_id', 'user_id', 'is_deleted')}
            for r in self.records.values()
            if r['company_id'] == company_id and r['user_id'] == user_id and not r['is_deleted']
        ]
        return newest_first(visible)

    def soft_delete(self, company_id, user_id, record_id):
        record = self.records.get(record_id)
        if not record or record['is_deleted'] or record['user_id'] != user_id or record['company_id'] != company_id:
            return False
        record['is_deleted'] = True
        return True


class FakeTripStore:
    def __init__(self):
        self.trips = {}
        self._trip_ids = itertools.count(1)
        self._segment_ids = itertools.count(100)

    def _public(self, trip):
        out = {k: v for k, v in trip.items() if k not in ('company_id', 'user_id', 'is_deleted')}
        out['segments'] = [
            {k: v for k, v in s.items() if k != 'position'}
            for s in sorted(trip['segments'], key=lambda s: (s['position'], s['id']))
        ]
        return copy.deepcopy(out)

    def get_pending(self, company_id, user_id):
        for trip in self.trips.values():
            if trip['company_id'] == company_id and trip['user_id'] == user_id and trip['status'] == 'pending':
                return {k: v for k, v in self._public(trip).items() if k in ('id', 'purpose', 'status', 'segments')}
        return None

    def create_pending(self, company_id, user_id, purpose):
        trip_id = next(self._trip_ids)
        self.trips[trip_id] = {
            'id': trip_id, 'company_id': company_id, 'user_id': user_id, 'purpose': purpose,
            'status': 'pending', 'segments': [], 'is_deleted': False
        }
        return trip_id

    def add_segment(self, trip_id, position, segment):
        segment_id = next(self._segment_ids)
        self.trips[trip_id]['segments'].append(dict(segment, id=segment_id, position=position))
        return segment_id

    def remove_segment(self, trip_id, segment_id):
        segments = self.trips[trip_id]['segments']
        remaining = [s for s in segments if s['id'] != segment_id]
        self.trips[trip_id]['segments'] = remaining
        return len(remaining) != len(segments)

    def delete_pending(self, trip_id):
        if self.trips.get(trip_id, {}).get('status') == 'pending':
            del self.trips[trip_id]

    def complete(self, trip_id, total_distance_km, total_emissions_kg):
        trip = self.trips[trip_id]
        trip.update(status='completed', total_distance_km=total_distance_km,
                    total_emissions_kg=total_emissions_kg)
        return True

    def list_completed(self, company_id, user_id):
        return [
            self._public(t) for t in self.trips.values()
            if t['company_id'] == company_id and t['user_id'] == user_id
            and t['status'] == 'completed' and not t['is_deleted']
        ]

    def soft_delete(self, company_id, user_id, trip_id):
        trip = self.trips.get(trip_id)
        if not trip or trip['status'] != 'completed' or trip['is_deleted'] or trip['user_id'] != user_id:
            return False
        trip['is_deleted'] = True
        return True


@pytest.fixture
def place():
    return make_place


@pytest.fixture
def maps():
    return FakeMapsClient()


@pytest.fixture
def stores():
    return {
        'companies': FakeCompanyStore(['acme']),
        'users': FakeUserStore(),
        'commutes': FakeCommuteStore(),
        'trips': FakeTripStore()
    }


@pytest.fixture
def app(stores, maps):
    return create_app({'TESTING': True, 'SEARCH_FALLBACK_REGIONS': ['Singapore', 'Malaysia']},
                      stores=stores, maps=maps)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user(stores):
    user_id = stores['users'].create(
        company_id='acme',
        email='jane@acme.test',
        password=generate_password_hash('s3cret'),
        employee_id='EMP001',
        home_location='Tampines, Singapore',
        office_location='Raffles Place, Singapore',
        distance_km=10.0
    )
    return {'id': user_id, 'company_id': 'acme', 'prefix': f'/companies/acme/users/{user_id}'}
