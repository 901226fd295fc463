from marketplace import db
from marketplace.data.core.timestamped_base import TimestampedBase


class OrderActivityLog(TimestampedBase):
    """Append-only audit entry for an order"""
    __tablename__ = 'order_activity_logs'

    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False, index=True)
    actor_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    actor_role = db.Column(db.String(20), nullable=True)
    action = db.Column(db.String(40), nullable=False)
    message = db.Column(db.Text, nullable=False)

    order = db.relationship('Order', back_populates='activity_logs')
    actor = db.relationship('User')

    def __repr__(self):
        return f'<OrderActivityLog order={self.order_id} {self.action}>'

    def to_dict(self):
        return {
            'id': self.id,
            'actor_id': self.actor_id,
            'actor_role': self.actor_role,
            'action': self.action,
            'message': self.message,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
