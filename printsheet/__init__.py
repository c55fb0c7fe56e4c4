"""
Print Sheet Builder - Flask Application Factory
Lays out copies of a passport/ID photo on a printable page with cut guides
"""

import os
import sys
from pathlib import Path
from flask import Flask
from loguru import logger
from dotenv import load_dotenv

from .config import AppConfig, load_config, load_catalog


def create_app(test_config=None):
    """Flask application factory"""

    # Load environment variables
    load_dotenv()

    app = Flask(__name__)

    # Load configuration
    environment = os.getenv('FLASK_ENV', 'development')
    config = load_config(environment)
    app.config.update(config.model_dump())
    if test_config:
        app.config.update(test_config)
        config = AppConfig(**{k: app.config[k] for k in AppConfig.model_fields if k in app.config})
    app.extensions['print_config'] = config

    # Werkzeug rejects larger request bodies before they are read
    app.config['MAX_CONTENT_LENGTH'] = config.MAX_UPLOAD_SIZE

    # Configure logging
    setup_logging(app)

    # Page and photo standard tables are read-only for the app's lifetime
    app.extensions['page_catalog'] = load_catalog(
        app.config.get('CATALOG_PATH'),
        default_page=app.config['DEFAULT_PAGE'],
        default_standard=app.config['DEFAULT_STANDARD']
    )

    # Register blueprints
    from . import routes
    app.register_blueprint(routes.bp)

    logger.info(f"Print Sheet Builder initialized in {app.config.get('FLASK_ENV', environment)} mode")

    return app


def setup_logging(app):
    """Configure loguru logging"""
    log_level = app.config.get('LOG_LEVEL', 'INFO')
    log_file = app.config.get('LOG_FILE')

    logger.remove()
    logger.add(sys.stderr, level=log_level)

    if not log_file:
        return

    # Ensure logs directory exists
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_file,
        rotation="1 day",
        retention="30 days",
        level=log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}"
    )
