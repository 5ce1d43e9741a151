import os

SECRET_KEY = os.environ.get('FLASK_SECRET_KEY', 'default_secret_key')

DB_CONFIG = {
    'host': os.environ.get('DB_HOST', 'localhost'),
    'port': int(os.environ.get('DB_PORT', 3306)),
    'user': os.environ.get('DB_USER'),
    'password': os.environ.get('DB_PASS'),
    'database': os.environ.get('DB_NAME')
}

GOOGLE_MAPS_API_KEY = os.environ.get('GOOGLE_MAPS_API_KEY', '')
MAPS_TIMEOUT_SECONDS = float(os.environ.get('MAPS_TIMEOUT_SECONDS', 10))
MAPS_MAX_RETRIES = int(os.environ.get('MAPS_MAX_RETRIES', 2))
MAPS_BACKOFF_FACTOR = float(os.environ.get('MAPS_BACKOFF_FACTOR', 0.5))

# Search is biased towards Singapore by default
SEARCH_BIAS = {
    'lat': float(os.environ.get('SEARCH_BIAS_LAT', 1.3521)),
    'lng': float(os.environ.get('SEARCH_BIAS_LNG', 103.8198))
}
SEARCH_RADIUS_M = int(os.environ.get('SEARCH_RADIUS_M', 500000))
SEARCH_RESULT_LIMIT = 10
SEARCH_DEBOUNCE_SECONDS = float(os.environ.get('SEARCH_DEBOUNCE_SECONDS', 0.3))
SEARCH_FALLBACK_REGIONS = [
    r.strip() for r in os.environ.get('SEARCH_FALLBACK_REGIONS', '').split(',') if r.strip()
] or None
