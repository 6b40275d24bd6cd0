# config.py

import os
from dotenv import load_dotenv

# Get the base directory of the application
basedir = os.path.abspath(os.path.dirname(__file__))

# This line finds the .env file in your root directory and loads it.
load_dotenv(os.path.join(basedir, '..', '.env'))
# --------------------------------------


def _split_origins(value):
    return [origin.strip() for origin in (value or '').split(',') if origin.strip()]


class Config:
    """
    Contains all the configuration variables for the application:
    logging, CORS and the defaults used by the projection endpoints.
    """
    # --- Secret Key ---
    SECRET_KEY = os.environ.get('SECRET_KEY')

    # --- Logging ---
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    # --- CORS ---
    # The desktop/web frontend runs on a different origin than the API.
    CORS_ORIGINS = _split_origins(os.environ.get('CORS_ORIGINS')) or [
        "http://127.0.0.1:5173",
        "http://localhost:5173",
        "http://127.0.0.1:5000",
        "http://localhost:5000",
    ]

    # --- Projection defaults ---
    # First year shown in multi-year projections, and how many years past
    # the current one they extend.
    PROJECTION_START_YEAR = int(os.environ.get('PROJECTION_START_YEAR') or 2025)
    YEARS_TO_PROJECT = int(os.environ.get('YEARS_TO_PROJECT') or 5)

    # 'distributed' (accrual over the service duration) or 'actual' (cash).
    DEFAULT_CALCULATION_MODE = 'distributed'
