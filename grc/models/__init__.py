"""
GRC Scope Service: SQLAlchemy models.

The shared ``db`` handle lives here so every model module and service can
``from grc.models import db`` without importing the application factory.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
