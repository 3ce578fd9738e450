#!/usr/bin/env python3
"""
Entry point for the cricket club service.

Usage:
    python run.py

Environment Variables:
    FLASK_ENV: development, testing or production (default: development)
    PORT: Port to run on (default: 5000)
    DATABASE_URL: SQLAlchemy database URL
    REDIS_URL: Optional, enables the live auction feed
"""
import os


def run_server():
    """Run the API server."""
    from clubhouse.app import create_app
    from clubhouse.models import db

    app = create_app()
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('FLASK_ENV', 'development') == 'development'

    print(f"Starting club service on port {port}...")
    try:
        app.run(host='0.0.0.0', port=port, debug=debug)
    finally:
        with app.app_context():
            db.engine.dispose()


if __name__ == '__main__':
    run_server()
