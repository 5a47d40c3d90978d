# models/base.py
from datetime import datetime
from coursehub.extensions import db


class BaseModel(db.Model):
    """Base model class with common columns."""

    __abstract__ = True

    # Integer keys: the dropout scan pages by ascending id
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    created_at = db.Column(db.DateTime, default=datetime.now, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)
