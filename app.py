import os

from flask import Flask, jsonify
from flask_cors import CORS

import config
from models.business_trip import BusinessTripStore
from models.commute_record import CommuteRecordStore
from models.company import CompanyStore
from models.user import UserStore
from routes.auth_routes import auth_bp
from routes.business_travel import business_travel_bp
from routes.commute_routes import commute_bp
from routes.places import places_bp
from routes.users import user_bp
from scheduler import start_scheduler
from utils.errors import CarbonTrackerError
from utils.location_search import FALLBACK_REGIONS, LocationSearch, SearchRegistry
from utils.maps_client import GoogleMapsClient


def default_stores():
    return {
        'companies': CompanyStore(),
        'users': UserStore(),
        'commutes': CommuteRecordStore(),
        'trips': BusinessTripStore()
    }


def create_app(overrides=None, stores=None, maps=None, scheduler=None):
    """Build the app. Stores, maps client and scheduler can be injected."""
    app = Flask(__name__)
    CORS(app)

    app.config.from_object(config)
    if overrides:
        app.config.update(overrides)
    app.secret_key = app.config['SECRET_KEY']

    if maps is None:
        maps = GoogleMapsClient(
            app.config['GOOGLE_MAPS_API_KEY'],
            timeout=app.config['MAPS_TIMEOUT_SECONDS'],
            max_retries=app.config['MAPS_MAX_RETRIES'],
            backoff_factor=app.config['MAPS_BACKOFF_FACTOR']
        )

    location_search = LocationSearch(
        maps,
        bias=app.config['SEARCH_BIAS'],
        radius=app.config['SEARCH_RADIUS_M'],
        regions=app.config['SEARCH_FALLBACK_REGIONS'] or FALLBACK_REGIONS,
        limit=app.config['SEARCH_RESULT_LIMIT']
    )

    app.extensions['carbon'] = {
        'stores': stores if stores is not None else default_stores(),
        'maps': maps,
        'location_search': location_search,
        'search_fields': SearchRegistry(
            location_search,
            scheduler=scheduler,
            debounce_seconds=app.config['SEARCH_DEBOUNCE_SECONDS']
        )
    }

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(commute_bp)
    app.register_blueprint(business_travel_bp)
    app.register_blueprint(places_bp)

    @app.errorhandler(CarbonTrackerError)
    def handle_tracker_error(e):
        if e.status_code >= 500:
            app.logger.error(f"{type(e).__name__}: {e.message}")
        else:
            app.logger.warning(f"{type(e).__name__}: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    return app


if __name__ == "__main__":
    app = create_app(scheduler=start_scheduler())
    app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)), debug=False)
