# models/activity.py
from sqlalchemy import Index

from coursehub.extensions import db
from .base import BaseModel


class ActivityDescription:
    """Audit trail tags."""
    COURSE_DROPOUT = 'COURSE_DROPOUT'


class Activity(BaseModel):
    """Append-only audit trail entry. Rows are inserted in bulk and never updated."""

    __tablename__ = 'activities'

    resource_id = db.Column(db.Integer, nullable=False)
    user_id = db.Column(db.Integer, nullable=False)
    description = db.Column(db.String(50), nullable=False)

    __table_args__ = (
        Index('idx_activity_resource_description', 'resource_id', 'description'),
        Index('idx_activity_user', 'user_id'),
    )

    def __repr__(self):
        return f'<Activity {self.id} {self.description} resource={self.resource_id}>'
