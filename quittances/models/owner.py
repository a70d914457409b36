"""
Owner model
The landlord issuing the receipts (single row)
"""
from datetime import datetime

from quittances.receipts.facts import Landlord


def create_owner_model(db):
    """Factory function to create Owner model with db instance"""

    class Owner(db.Model):
        __tablename__ = 'owner'

        id = db.Column(db.Integer, primary_key=True)
        name = db.Column(db.String(150), nullable=False)
        address1 = db.Column(db.String(255), nullable=False)
        address2 = db.Column(db.String(255))
        city = db.Column(db.String(120))
        signature = db.Column(db.String(150))
        signature_path = db.Column(db.String(500))
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
        updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

        @staticmethod
        def get_owner():
            """The landlord row, or None before seeding"""
            return Owner.query.order_by(Owner.id).first()

        def to_facts(self):
            """Value object consumed by the receipt renderer"""
            return Landlord(
                name=self.name,
                address_line1=self.address1,
                address_line2=self.address2,
                signature_text=self.signature,
                signature_image_path=self.signature_path,
                city=self.city,
            )

        def to_dict(self):
            """Convert to dictionary for JSON serialization"""
            return {
                'id': self.id,
                'name': self.name,
                'address1': self.address1,
                'address2': self.address2,
                'city': self.city,
                'signature': self.signature,
                'signaturePath': self.signature_path,
                'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
            }

        def __repr__(self):
            return f'<Owner {self.id}: {self.name}>'

    return Owner
