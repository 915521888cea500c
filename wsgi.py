"""
WSGI entry point and Flask-Migrate / Alembic CLI target.

Usage:
    gunicorn wsgi:app
    FLASK_APP=wsgi flask db init       # first time only (creates migrations/)
    FLASK_APP=wsgi flask db migrate -m "description"
    FLASK_APP=wsgi flask db upgrade
"""

from siteledger import create_app

app = create_app()
