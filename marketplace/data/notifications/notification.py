from marketplace import db
from marketplace.data.core.timestamped_base import TimestampedBase


class Notification(TimestampedBase):
    """In-app notification persisted for a user"""
    __tablename__ = 'notifications'

    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    type = db.Column(db.String(40), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    data = db.Column(db.JSON, nullable=True)
    read = db.Column(db.Boolean, nullable=False, default=False)

    def __repr__(self):
        return f'<Notification user={self.user_id} {self.type}>'

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'data': self.data or {},
            'read': self.read,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
