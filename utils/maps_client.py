import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from utils.errors import (
    BillingDisabled,
    InvalidInput,
    NotFound,
    ProviderUnavailable,
    QuotaExceeded,
)
from utils.geo import decode_polyline

logger = logging.getLogger(__name__)

TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"

EMPTY_STATUSES = ('ZERO_RESULTS', 'NOT_FOUND')
ROUTE_MODES = ('driving', 'transit', 'bicycling', 'walking')


class PlaceCandidate:
    def __init__(self, name, formatted_address, place_id, lat, lng, types=None):
        self.name = name
        self.formatted_address = formatted_address
        self.place_id = place_id
        self.lat = lat
        self.lng = lng
        self.types = list(types or [])

    @classmethod
    def from_result(cls, result, name=None):
        location = result['geometry']['location']
        address = result.get('formatted_address', '')
        return cls(
            name=name or result.get('name') or address,
            formatted_address=address,
            place_id=result['place_id'],
            lat=location['lat'],
            lng=location['lng'],
            types=result.get('types')
        )

    def to_dict(self):
        return {
            'name': self.name,
            'formatted_address': self.formatted_address,
            'place_id': self.place_id,
            'location': {'lat': self.lat, 'lng': self.lng},
            'types': self.types
        }

    def __repr__(self):
        return f"PlaceCandidate({self.place_id!r}, {self.formatted_address!r})"


def build_session(max_retries=2, backoff_factor=0.5):
    """Session that retries idempotent GETs with exponential backoff."""
    retry = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=frozenset(['GET'])
    )
    session = requests.Session()
    session.mount('https://', HTTPAdapter(max_retries=retry))
    return session


def raise_for_status(status, error_message=None):
    """Translate a Google web service status into our error taxonomy."""
    if status == 'OK' or status in EMPTY_STATUSES:
        return
    detail = f"{status}: {error_message}" if error_message else status
    if status in ('OVER_QUERY_LIMIT', 'OVER_DAILY_LIMIT'):
        raise QuotaExceeded(f"Maps quota exceeded ({detail})")
    if status == 'REQUEST_DENIED':
        raise BillingDisabled(
            f"Maps request denied ({detail}). Check that billing and the API are enabled in Google Cloud Console."
        )
    if status == 'INVALID_REQUEST':
        raise InvalidInput(f"Invalid maps request ({detail})")
    raise ProviderUnavailable(f"Maps service failed ({detail})")


def _format_point(point):
    if isinstance(point, dict):
        return f"{point['lat']},{point['lng']}"
    return point


class GoogleMapsClient:
    """Thin client over the Google Maps web services used by the app."""

    def __init__(self, api_key, session=None, timeout=10, max_retries=2, backoff_factor=0.5):
        self.api_key = api_key
        self.timeout = timeout
        # One session is shared by the fallback geocoding threads. Only GETs go
        # through it and the urllib3 connection pool underneath is thread-safe.
        self.session = session or build_session(max_retries, backoff_factor)

    def _get(self, url, params):
        params = dict(params, key=self.api_key)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Maps request to {url} failed: {str(e)}")
            raise ProviderUnavailable(f"Maps service unreachable: {str(e)}")

        if response.status_code >= 400:
            raise ProviderUnavailable(f"Maps service returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            raise ProviderUnavailable("Maps service returned an invalid response")

        raise_for_status(data.get('status'), data.get('error_message'))
        return data

    def text_search(self, query, bias=None, radius=None):
        params = {'query': query}
        if bias is not None:
            params['location'] = _format_point(bias)
        if radius is not None:
            params['radius'] = int(radius)
        data = self._get(TEXT_SEARCH_URL, params)
        return [PlaceCandidate.from_result(r) for r in data.get('results', [])]

    def geocode_all(self, address):
        data = self._get(GEOCODE_URL, {'address': address})
        # Geocoder results have no name; the address stands in for it
        return [
            PlaceCandidate.from_result(r, name=r.get('formatted_address'))
            for r in data.get('results', [])
        ]

    def geocode(self, address):
        results = self.geocode_all(address)
        if not results:
            raise NotFound(
                f'Address not found: "{address}". Please check the spelling and try a more specific address.'
            )
        return results[0]

    def reverse_geocode(self, lat, lng):
        data = self._get(GEOCODE_URL, {'latlng': f"{lat},{lng}"})
        results = data.get('results', [])
        if not results:
            raise NotFound(f"No address found at {lat},{lng}")
        return results[0]['formatted_address']

    def route(self, origin, destination, mode='driving'):
        if mode not in ROUTE_MODES:
            raise InvalidInput(f"Unsupported route mode '{mode}'")
        data = self._get(DIRECTIONS_URL, {
            'origin': _format_point(origin),
            'destination': _format_point(destination),
            'mode': mode
        })
        if not data.get('routes'):
            raise NotFound("No route found between the selected locations")

        route = data['routes'][0]
        leg = route['legs'][0]
        return {
            'distance_km': leg['distance']['value'] / 1000,
            'distance_text': leg['distance']['text'],
            'duration_text': leg['duration']['text'],
            'path': decode_polyline(route.get('overview_polyline', {}).get('points'))
        }
