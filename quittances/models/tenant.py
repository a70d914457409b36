"""
Tenant model
People receiving rent receipts
"""
from datetime import datetime

from quittances.receipts.facts import TenantFacts


def create_tenant_model(db):
    """Factory function to create Tenant model with db instance"""

    class Tenant(db.Model):
        """
        Tenant of an apartment

        Attributes:
            gender: 'M' or 'F'; selects "Monsieur" or "Madame" on receipts
            apartment_id: Rented apartment; its address wins over ``address``
            address: Free-text address kept for tenants without an apartment
            rent_amount: Monthly rent proposed when generating a receipt
            charges: Monthly charges proposed when generating a receipt
            is_active: Soft-delete flag
        """
        __tablename__ = 'tenants'

        id = db.Column(db.Integer, primary_key=True)
        first_name = db.Column(db.String(100), nullable=False)
        last_name = db.Column(db.String(100), nullable=False)
        gender = db.Column(db.String(1), nullable=False, default='M')
        email = db.Column(db.String(120), unique=True)
        phone = db.Column(db.String(30))
        address = db.Column(db.String(255))
        apartment_id = db.Column(db.Integer, db.ForeignKey('apartments.id', ondelete='SET NULL'), nullable=True)
        rent_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
        charges = db.Column(db.Numeric(10, 2), nullable=False, default=0)
        deposit_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
        lease_start_date = db.Column(db.Date)
        lease_end_date = db.Column(db.Date)
        is_active = db.Column(db.Boolean, nullable=False, default=True)
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
        updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

        apartment = db.relationship('Apartment', back_populates='tenants')
        receipts = db.relationship('Receipt', back_populates='tenant', lazy='dynamic',
                                   cascade='all, delete-orphan')

        __table_args__ = (
            db.CheckConstraint("gender IN ('M', 'F')", name='ck_tenants_gender'),
            db.Index('idx_tenants_active', 'is_active'),
            db.Index('idx_tenants_apartment', 'apartment_id'),
        )

        @property
        def full_name(self):
            return f"{self.first_name} {self.last_name}"

        def to_facts(self):
            """Value object consumed by the receipt renderer"""
            apartment = self.apartment
            return TenantFacts(
                first_name=self.first_name,
                last_name=self.last_name,
                gender=self.gender,
                email=self.email,
                apartment_address=apartment.address if apartment else None,
                apartment_city=apartment.city if apartment else None,
                apartment_postal_code=apartment.postal_code if apartment else None,
                legacy_address=self.address,
            )

        def to_dict(self):
            """Convert to dictionary for JSON serialization"""
            apartment = self.apartment
            return {
                'id': self.id,
                'firstName': self.first_name,
                'lastName': self.last_name,
                'gender': self.gender,
                'email': self.email,
                'phone': self.phone,
                'address': self.address,
                'apartmentId': self.apartment_id,
                'apartmentName': apartment.name if apartment else None,
                'apartmentAddress': apartment.full_address if apartment else None,
                'rentAmount': float(self.rent_amount or 0),
                'charges': float(self.charges or 0),
                'depositAmount': float(self.deposit_amount or 0),
                'leaseStartDate': self.lease_start_date.isoformat() if self.lease_start_date else None,
                'leaseEndDate': self.lease_end_date.isoformat() if self.lease_end_date else None,
                'isActive': self.is_active,
                'createdAt': self.created_at.isoformat() if self.created_at else None,
            }

        def __repr__(self):
            return f'<Tenant {self.id}: {self.full_name}>'

    return Tenant
