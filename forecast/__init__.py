# forecast/__init__.py

import logging
from flask import Flask
from flask_cors import CORS
from .config import Config

LOG_HANDLER_NAME = 'forecast-stream'


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Configure logging from LOG_LEVEL (INFO by default)
    level = getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO)
    app.logger.setLevel(level)
    # Flask reuses the same logger across app instances; attach our handler once.
    if not any(h.get_name() == LOG_HANDLER_NAME for h in app.logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(LOG_HANDLER_NAME)
        formatter = logging.Formatter('[%(asctime)s] %(levelname)s: %(message)s')
        handler.setFormatter(formatter)
        app.logger.addHandler(handler)
    for handler in app.logger.handlers:
        if handler.get_name() == LOG_HANDLER_NAME:
            handler.setLevel(level)

    # The frontend and the API are served by different processes.
    CORS(app, origins=app.config['CORS_ORIGINS'])

    # --- REGISTER BLUEPRINTS ---
    from .api.calculations import bp as calculations_bp
    app.register_blueprint(calculations_bp, url_prefix='/api')

    return app
