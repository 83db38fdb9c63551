"""Shared Flask extensions used by the daily game, accounts and seeding script."""

from flask_sqlalchemy import SQLAlchemy

# Bound to the app in create_app(); models and stores import `db` from here.
db = SQLAlchemy()
