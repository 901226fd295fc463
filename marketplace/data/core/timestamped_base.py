from marketplace import db
from datetime import datetime


class TimestampedBase(db.Model):
    """Abstract base class for marketplace records with creation/update timestamps"""

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
