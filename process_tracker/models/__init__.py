"""
Process Change Tracker
SQLAlchemy extension instance shared by all models.

Usage:
    from process_tracker.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
