"""Location search: place text search with a multi-region geocoding fallback.

The primary text search is biased to a location and radius. When it fails or
finds nothing, the query is geocoded as-is and once per fallback region
("<query>, <region>") concurrently. Those results are filtered, merged,
de-duplicated by place id and ranked so that addresses containing the query
come first.

``SearchField`` wraps the cascade in the per-input state machine used by the
places API: submissions are debounced through the scheduler and only the most
recently issued token may publish results.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

import pytz

from utils.errors import CarbonTrackerError

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
DEFAULT_RADIUS_M = 500000

FALLBACK_REGIONS = (
    'Singapore',
    'Malaysia',
    'Indonesia',
    'Thailand',
    'Vietnam',
    'Philippines',
    'India',
    'China',
    'Japan',
    'Australia',
    'United States',
    'United Kingdom',
    'Germany',
    'France',
)

IDLE = 'idle'
SEARCHING = 'searching'
FALLBACK = 'fallback'
RESULTS = 'results'
EMPTY = 'empty'
FAILED = 'failed'


def fallback_queries(query, regions=FALLBACK_REGIONS):
    return [query] + [f"{query}, {region}" for region in regions]


def is_country_only(address, regions=FALLBACK_REGIONS):
    """True for a bare country match such as "Singapore"."""
    lowered = address.strip().lower()
    if ',' in lowered:
        return False
    return any(region.lower() == lowered for region in regions)


def merge_fallback_results(result_sets, query, regions=FALLBACK_REGIONS, limit=DEFAULT_LIMIT):
    needle = query.strip().lower()
    seen = set()
    merged = []
    for results in result_sets:
        for candidate in results:
            if is_country_only(candidate.formatted_address, regions):
                continue
            if candidate.place_id in seen:
                continue
            seen.add(candidate.place_id)
            merged.append(candidate)

    # sort is stable, matches keep their relative order
    merged.sort(key=lambda c: needle not in c.formatted_address.lower())
    return merged[:limit]


class LocationSearch:
    def __init__(self, provider, bias=None, radius=DEFAULT_RADIUS_M, regions=FALLBACK_REGIONS,
                 limit=DEFAULT_LIMIT, max_workers=8):
        self.provider = provider
        self.bias = bias
        self.radius = radius
        self.regions = tuple(regions)
        self.limit = limit
        self.max_workers = max_workers

    def search(self, query, on_fallback=None):
        query = (query or '').strip()
        if not query:
            return []

        try:
            results = self.provider.text_search(query, self.bias, self.radius)
        except CarbonTrackerError as e:
            logger.warning(f"Place search for '{query}' failed, falling back to geocoding: {e.message}")
            results = []

        if results:
            return results[:self.limit]

        if on_fallback is not None:
            on_fallback()
        return self.fallback(query)

    def fallback(self, query):
        variations = fallback_queries(query, self.regions)
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(variations))) as pool:
            futures = [pool.submit(self.provider.geocode_all, v) for v in variations]

        result_sets = []
        errors = []
        for variation, future in zip(variations, futures):
            try:
                result_sets.append(future.result())
            except Exception as e:
                logger.warning(f"Geocoding '{variation}' failed: {str(e)}")
                errors.append(e)

        if errors and len(errors) == len(futures):
            raise errors[-1]

        return merge_fallback_results(result_sets, query, self.regions, self.limit)


class SearchField:
    """Search state for one input field.

    Each submit() takes a new token. A run only changes state while its token
    is still the latest one, so a superseded search never overwrites results.
    """

    def __init__(self, search, scheduler=None, debounce_seconds=0.3, job_id=None):
        self.search = search
        self.scheduler = scheduler
        self.debounce_seconds = debounce_seconds
        self.job_id = job_id or f"search-{id(self)}"
        self._lock = threading.Lock()
        self._latest = 0
        self.query = ''
        self.state = IDLE
        self.results = []
        self.error = None

    @property
    def latest_token(self):
        return self._latest

    def submit(self, query):
        query = (query or '').strip()
        with self._lock:
            self._latest += 1
            token = self._latest
            self.query = query
            self.state = IDLE
            self.results = []
            self.error = None

        if not query:
            if self.scheduler is not None and self.scheduler.get_job(self.job_id):
                self.scheduler.remove_job(self.job_id)
            return token

        if self.scheduler is None:
            self.run(token, query)
        else:
            run_date = datetime.now(pytz.utc) + timedelta(seconds=self.debounce_seconds)
            self.scheduler.add_job(
                self.run,
                'date',
                run_date=run_date,
                args=[token, query],
                id=self.job_id,
                replace_existing=True,
                misfire_grace_time=None
            )
        return token

    def run(self, token, query):
        if not self._commit(token, SEARCHING):
            return
        try:
            results = self.search.search(query, on_fallback=lambda: self._commit(token, FALLBACK))
        except CarbonTrackerError as e:
            self._commit(token, FAILED, error=e.message)
            return
        except Exception:
            logger.exception(f"Search for '{query}' failed")
            self._commit(token, FAILED, error="Location search failed, please try again")
            return
        self._commit(token, RESULTS if results else EMPTY, results)

    def _commit(self, token, state, results=None, error=None):
        with self._lock:
            if token != self._latest:
                logger.debug(f"Discarding superseded search token {token} (latest {self._latest})")
                return False
            self.state = state
            if results is not None:
                self.results = results
            self.error = error
            return True

    def snapshot(self):
        with self._lock:
            return {
                'token': self._latest,
                'query': self.query,
                'state': self.state,
                'results': [c.to_dict() for c in self.results],
                'error': self.error
            }


class SearchRegistry:
    """SearchField per (company, user, field)."""

    def __init__(self, search, scheduler=None, debounce_seconds=0.3):
        self.search = search
        self.scheduler = scheduler
        self.debounce_seconds = debounce_seconds
        self._fields = {}
        self._lock = threading.Lock()

    def field(self, company_id, user_id, name):
        key = (company_id, user_id, name)
        with self._lock:
            if key not in self._fields:
                self._fields[key] = SearchField(
                    self.search,
                    scheduler=self.scheduler,
                    debounce_seconds=self.debounce_seconds,
                    job_id=f"search:{company_id}:{user_id}:{name}"
                )
            return self._fields[key]

    def snapshot(self, company_id, user_id, name):
        """Snapshot of an existing field, or an idle one without registering it."""
        with self._lock:
            field = self._fields.get((company_id, user_id, name))
        if field is None:
            return {'token': 0, 'query': '', 'state': IDLE, 'results': [], 'error': None}
        return field.snapshot()
