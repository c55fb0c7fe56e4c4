#!/usr/bin/env python3
"""
Production deployment configuration for the Print Sheet Builder.

Provides the WSGI application and a Waitress entry point.
"""

import os
import sys
from pathlib import Path

from loguru import logger


def create_production_app():
    """Create production Flask application with proper configuration."""
    # Set production environment
    os.environ['FLASK_ENV'] = 'production'

    # Import after setting environment
    from printsheet import create_app

    config = {
        'SECRET_KEY': os.environ.get('SECRET_KEY', 'production-secret-key-change-me'),
        'DEBUG': False,
        'TESTING': False,
        'LOG_FILE': os.environ.get('LOG_FILE', '/var/log/printsheet/app.log'),
        'LOG_LEVEL': os.environ.get('LOG_LEVEL', 'INFO'),
        'CATALOG_PATH': os.environ.get('CATALOG_PATH', 'config/catalog.yaml'),
        'MAX_UPLOAD_SIZE': int(os.environ.get('MAX_UPLOAD_SIZE', '20971520')),  # 20MB
    }

    return create_app(config)


def check_production_requirements():
    """Check that production requirements are met."""
    errors = []

    if not os.environ.get('SECRET_KEY'):
        errors.append("Environment variable SECRET_KEY is required")

    log_file = Path(os.environ.get('LOG_FILE', '/var/log/printsheet/app.log'))
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        errors.append(f"No write permission to log folder: {log_file.parent}")

    return errors


if __name__ == '__main__':
    errors = check_production_requirements()
    if errors:
        print("Production requirements not met:")
        for error in errors:
            print(f"  - {error}")
        sys.exit(1)

    from waitress import serve

    app = create_production_app()

    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', '8000'))
    threads = int(os.environ.get('THREADS', '4'))

    logger.info(f"Starting Print Sheet Builder on {host}:{port} ({threads} threads)")

    serve(
        app,
        host=host,
        port=port,
        threads=threads,
        channel_timeout=120,
        url_scheme='https' if os.environ.get('HTTPS', '').lower() == 'true' else 'http'
    )
