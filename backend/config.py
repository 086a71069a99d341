import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///territory_tracker.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Upstream API
    WYNN_TERRITORY_URL = os.environ.get('WYNN_TERRITORY_URL', 'https://api.wynncraft.com/public_api.php?action=territoryList')
    WYNN_PLAYER_URL = os.environ.get('WYNN_PLAYER_URL', 'https://api.wynncraft.com/v2/player/{name}/stats')
    # Time zone the upstream `acquired` timestamps are expressed in
    WYNN_TIMEZONE = os.environ.get('WYNN_TIMEZONE', 'UTC')
    HTTP_TIMEOUT_SEC = float(os.environ.get('HTTP_TIMEOUT_SEC', '10'))
    # Territory tracker schedule (seconds between cycle starts)
    TRACKER_ENABLED = os.environ.get('TRACKER_ENABLED', '1') in ('1', 'true', 'yes', 'on')
    TERRITORY_TRACKER_FIRST_DELAY_SEC = float(os.environ.get('TERRITORY_TRACKER_FIRST_DELAY_SEC', '1'))
    TERRITORY_TRACKER_INTERVAL_SEC = float(os.environ.get('TERRITORY_TRACKER_INTERVAL_SEC', '30'))
    # Player resource quota: 750 requests per 30 minutes
    PLAYER_RATE_LIMIT_REQUESTS = int(os.environ.get('PLAYER_RATE_LIMIT_REQUESTS', '750'))
    PLAYER_RATE_LIMIT_WINDOW_SEC = float(os.environ.get('PLAYER_RATE_LIMIT_WINDOW_SEC', '1800'))
    MAX_REQUEST_BURST = int(os.environ.get('MAX_REQUEST_BURST', '5'))
    # Player stats cache
    CACHE_RETENTION_SEC = float(os.environ.get('CACHE_RETENTION_SEC', '600'))
    CACHE_SWEEP_INTERVAL_SEC = float(os.environ.get('CACHE_SWEEP_INTERVAL_SEC', '600'))
    # Fallback rendering for channels without their own preference
    DEFAULT_TIMEZONE = os.environ.get('DEFAULT_TIMEZONE', 'UTC')
    DEFAULT_DATE_FORMAT = os.environ.get('DEFAULT_DATE_FORMAT', '%Y/%m/%d %H:%M:%S')
    # Browser origins allowed to reach the API and socket
    CORS_ORIGINS = [o for o in os.environ.get('CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173').split(',') if o]
