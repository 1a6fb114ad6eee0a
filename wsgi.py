"""
WSGI / Flask-Migrate entry point.

Usage:
    flask --app wsgi db migrate -m "description"
    flask --app wsgi db upgrade
    flask --app wsgi recompute-progress
    gunicorn wsgi:app
"""

from grc import create_app

app = create_app()
