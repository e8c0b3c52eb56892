from sqlalchemy import Column, String, DateTime, Text, Integer, Numeric
from sqlalchemy.orm import declarative_base
from datetime import datetime, timezone

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Payment(Base):
    """Insert-only payment ledger; one row per gateway callback"""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    payment_id = Column(String(255), index=True, nullable=False)
    order_id = Column(String(255), index=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
    product_name = Column(String(255), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(8), default="INR")
    payment_method = Column(String(64), default="unknown")
    status = Column(String(32), index=True, nullable=False)
    payment_date = Column(DateTime, nullable=True)
    razorpay_signature = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "payment_id": self.payment_id,
            "order_id": self.order_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "product_name": self.product_name,
            "amount": float(self.amount) if self.amount is not None else 0.0,
            "currency": self.currency,
            "payment_method": self.payment_method,
            "status": self.status,
            "payment_date": self.payment_date.isoformat() if self.payment_date else None,
            "razorpay_signature": self.razorpay_signature,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
