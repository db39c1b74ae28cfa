"""
WSGI / Flask CLI entry point.

Usage:
    flask --app wsgi run
    flask --app wsgi seed-titles
    flask --app wsgi db upgrade
    gunicorn wsgi:app
"""

from review_portal import create_app

app = create_app()
