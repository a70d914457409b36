"""
Apartment model
Rental units whose address is printed on receipts
"""
from datetime import datetime


def create_apartment_model(db):
    """Factory function to create Apartment model with db instance"""

    class Apartment(db.Model):
        """
        Rented property

        Attributes:
            name: Short label used in lists
            address: Street line printed as "Adresse de la location"
            city: City printed after the street line
            postal_code: Postal code printed after the city
            is_active: Soft-delete flag
        """
        __tablename__ = 'apartments'

        id = db.Column(db.Integer, primary_key=True)
        name = db.Column(db.String(120), nullable=False)
        address = db.Column(db.String(255), nullable=False)
        city = db.Column(db.String(120), nullable=False)
        postal_code = db.Column(db.String(10), nullable=False)
        description = db.Column(db.Text)
        is_active = db.Column(db.Boolean, nullable=False, default=True)
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
        updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

        tenants = db.relationship('Tenant', back_populates='apartment', lazy='dynamic')

        __table_args__ = (
            db.Index('idx_apartments_active', 'is_active'),
        )

        @property
        def full_address(self):
            return f"{self.address}, {self.city} {self.postal_code}"

        def to_dict(self):
            """Convert to dictionary for JSON serialization"""
            return {
                'id': self.id,
                'name': self.name,
                'address': self.address,
                'city': self.city,
                'postalCode': self.postal_code,
                'description': self.description,
                'isActive': self.is_active,
                'createdAt': self.created_at.isoformat() if self.created_at else None,
                'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
            }

        def __repr__(self):
            return f'<Apartment {self.id}: {self.name}>'

    return Apartment
