from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel
from typing import Optional

class CustomerInfo(BaseModel):
    """Customer details supplied by the checkout widget (separated from HTTP concerns)"""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    product_name: Optional[str] = None

class GatewayPayment(BaseModel):
    """Authoritative payment details as reported by the gateway"""
    id: str
    amount: Decimal
    currency: str
    status: str
    method: str
    created_at: datetime
    email: Optional[str] = None
    contact: Optional[str] = None
