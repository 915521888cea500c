"""
SiteLedger
SQLAlchemy extension instance shared by every model module.

Usage:
    from siteledger.models import db
"""

import uuid

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def _uuid() -> str:
    """Opaque primary key for every domain table."""
    return str(uuid.uuid4())
