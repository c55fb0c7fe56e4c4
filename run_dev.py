#!/usr/bin/env python3
"""
Print Sheet Builder - Development Runner
Run this script to start the development server
"""

import os
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

# Set environment defaults
os.environ.setdefault('FLASK_APP', 'printsheet')
os.environ.setdefault('FLASK_ENV', 'development')

from printsheet import create_app


def main():
    """Main entry point"""
    print("=" * 60)
    print("Print Sheet Builder - Development Server")
    print("=" * 60)

    # Create and configure the app
    app = create_app()

    # Print startup info
    print(f"Environment: {app.config.get('FLASK_ENV', 'unknown')}")
    print(f"Debug mode: {app.config.get('DEBUG', False)}")
    print(f"Log level: {app.config.get('LOG_LEVEL', 'INFO')}")

    # Validate configuration files
    config_files = [
        'config/settings.yaml',
        'config/catalog.yaml'
    ]

    missing_configs = [f for f in config_files if not Path(f).exists()]
    if missing_configs:
        print(f"Missing config files: {', '.join(missing_configs)}")
        print("   Built-in defaults will be used.")

    catalog = app.extensions['page_catalog']
    print(f"Pages: {', '.join(catalog.pages)}")
    print(f"Photo standards: {', '.join(catalog.standards)}")

    print("-" * 60)
    print("Starting development server...")
    print("Open your browser to: http://localhost:5000/api/pages")
    print("Press Ctrl+C to stop")
    print("-" * 60)

    # Run the development server
    app.run(
        host='0.0.0.0',
        port=5000,
        debug=app.config.get('DEBUG', True),
        use_reloader=True,
        threaded=True
    )


if __name__ == '__main__':
    main()
