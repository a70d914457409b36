"""
Receipt model
Record of a generated receipt PDF
"""
from datetime import datetime


def create_receipt_model(db):
    """Factory function to create Receipt model with db instance"""

    class Receipt(db.Model):
        """
        Generated rent receipt

        One receipt per tenant and period; the unique constraint backs the
        check made before rendering. Only the email fields change after
        creation.

        Attributes:
            amount: Rent paid for the period
            charges: Charges paid for the period
            file_name: Generated PDF name, also used as the email attachment name
            file_path: Location of the PDF in the receipts directory
            email_sent: Whether the PDF was delivered to the tenant
        """
        __tablename__ = 'receipts'

        id = db.Column(db.Integer, primary_key=True)
        tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)
        template_id = db.Column(db.Integer, db.ForeignKey('receipt_templates.id', ondelete='SET NULL'), nullable=True)
        month = db.Column(db.Integer, nullable=False)
        year = db.Column(db.Integer, nullable=False)
        amount = db.Column(db.Numeric(10, 2), nullable=False)
        charges = db.Column(db.Numeric(10, 2), nullable=False, default=0)
        payment_date = db.Column(db.Date, nullable=True)
        file_name = db.Column(db.String(255), nullable=False)
        file_path = db.Column(db.String(500), nullable=False)
        email_sent = db.Column(db.Boolean, nullable=False, default=False)
        email_sent_at = db.Column(db.DateTime, nullable=True)
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
        updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

        tenant = db.relationship('Tenant', back_populates='receipts')
        template = db.relationship('ReceiptTemplate')

        __table_args__ = (
            db.UniqueConstraint('tenant_id', 'month', 'year', name='uq_receipts_tenant_period'),
            db.Index('idx_receipts_period', 'year', 'month'),
        )

        @property
        def total(self):
            return (self.amount or 0) + (self.charges or 0)

        def mark_email_sent(self):
            self.email_sent = True
            self.email_sent_at = datetime.utcnow()

        def to_dict(self):
            """Convert to dictionary for JSON serialization"""
            tenant = self.tenant
            return {
                'id': self.id,
                'tenantId': self.tenant_id,
                'tenantName': tenant.full_name if tenant else None,
                'templateId': self.template_id,
                'month': self.month,
                'year': self.year,
                'amount': float(self.amount or 0),
                'charges': float(self.charges or 0),
                'total': float(self.total),
                'paymentDate': self.payment_date.isoformat() if self.payment_date else None,
                'fileName': self.file_name,
                'emailSent': self.email_sent,
                'emailSentAt': self.email_sent_at.isoformat() if self.email_sent_at else None,
                'createdAt': self.created_at.isoformat() if self.created_at else None,
            }

        def __repr__(self):
            return f'<Receipt {self.id}: tenant {self.tenant_id} {self.month:02d}/{self.year}>'

    return Receipt
