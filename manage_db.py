#!/usr/bin/env python3
"""
Database management script for deployment.
Run this during the build/deployment pipeline to handle migrations.
"""
import os
import sys

# Add current directory to path so we can import clubhouse
sys.path.append(os.getcwd())

from clubhouse.app import create_app
from clubhouse.models import db
from flask_migrate import upgrade


def deploy():
    """Run deployment tasks."""
    print("Starting database migration...")
    app = create_app()
    with app.app_context():
        migrations_dir = os.path.join(os.getcwd(), 'migrations')
        if not os.path.isdir(migrations_dir):
            db.create_all()
            print("✓ No migrations directory; tables created from models.")
            return

        # Run Alembic upgrade to apply migrations
        try:
            upgrade(directory=migrations_dir)
            print("✓ Database migrations applied.")
        except Exception as e:
            print(f"Error applying migrations: {e}")
            sys.exit(1)


if __name__ == '__main__':
    deploy()
