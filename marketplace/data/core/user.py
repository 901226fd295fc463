from enum import Enum
from marketplace import db, login_manager
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from marketplace.data.core.timestamped_base import TimestampedBase


class UserRole(str, Enum):
    MANUFACTURER = 'manufacturer'
    SUPPLIER = 'supplier'
    ADMIN = 'admin'


class UserStatus(str, Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    SUSPENDED = 'suspended'
    ACTIVE = 'active'


class User(UserMixin, TimestampedBase):
    __tablename__ = 'users'

    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=UserRole.MANUFACTURER.value)
    status = db.Column(db.String(20), nullable=False, default=UserStatus.ACTIVE.value)
    company_name = db.Column(db.String(200), nullable=True)
    phone = db.Column(db.String(40), nullable=True)

    # Factory location used as the fallback delivery destination
    factory_address = db.Column(db.String(300), nullable=True)
    factory_place_name = db.Column(db.String(200), nullable=True)
    factory_contact_name = db.Column(db.String(120), nullable=True)
    factory_contact_phone = db.Column(db.String(40), nullable=True)

    # Relationships
    cart_entries = db.relationship('CartEntry', back_populates='user', lazy='select',
                                   cascade='all, delete-orphan', order_by='CartEntry.id')
    products = db.relationship('Product', back_populates='supplier', lazy='dynamic')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_active(self):
        return self.status not in (UserStatus.SUSPENDED.value, UserStatus.REJECTED.value)

    @property
    def is_supplier(self):
        return self.role == UserRole.SUPPLIER.value

    @property
    def is_manufacturer(self):
        return self.role == UserRole.MANUFACTURER.value

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN.value

    @property
    def is_approved_supplier(self):
        return self.is_supplier and self.status == UserStatus.APPROVED.value

    @property
    def factory_location(self):
        """Factory location as a delivery mapping, or None when no address is on file"""
        if not self.factory_address:
            return None
        return {
            'address': self.factory_address,
            'place_name': self.factory_place_name,
            'contact_name': self.factory_contact_name or self.name,
            'contact_phone': self.factory_contact_phone or self.phone,
        }

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'status': self.status,
            'company_name': self.company_name,
            'factory_location': self.factory_location,
        }

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))
