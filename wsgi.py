"""
WSGI entry point.

Usage:
    gunicorn wsgi:app
    flask --app wsgi run
"""

from landuse import create_app

app = create_app()
