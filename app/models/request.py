import re
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Optional
from app.models.internal import CustomerInfo

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

def _numbers_as_text(v):
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class OtpVerifyRequest(BaseModel):
    email: Optional[str] = None
    otp: Optional[str] = None

    @field_validator("otp", mode="before")
    @classmethod
    def coerce_otp(cls, v):
        """Widgets sometimes post the code as a number"""
        if isinstance(v, int):
            return str(v)
        return v

class CheckoutRequest(BaseModel):
    """Customer fields shared by checkout callbacks"""
    model_config = ConfigDict(populate_by_name=True)

    product_name: Optional[str] = Field(None, alias="productName")
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("product_name", "name", "email", "phone", mode="before")
    @classmethod
    def coerce_text(cls, v):
        """Checkout widgets may post phone numbers and the like as JSON numbers"""
        return _numbers_as_text(v)

    def to_customer(self) -> CustomerInfo:
        return CustomerInfo(
            name=self.name,
            email=self.email,
            phone=self.phone,
            product_name=self.product_name,
        )

class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Parsed by the service so a bad value maps to the invalid-amount message
    amount: Any = Field(None, description="Amount in major currency units")
    product_name: Optional[str] = Field(None, alias="productName")

class VerifyPaymentRequest(CheckoutRequest):
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None

class PaymentFailedRequest(CheckoutRequest):
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    error_code: Optional[str] = None
    error_description: Optional[str] = None

    @field_validator("error_code", "error_description", mode="before")
    @classmethod
    def coerce_error(cls, v):
        return _numbers_as_text(v)

class SubscribeRequest(BaseModel):
    email: Optional[str] = None

    def normalized_email(self) -> Optional[str]:
        """Lower-cased address, or None when missing or implausible"""
        if not self.email:
            return None
        email = self.email.strip().lower()
        return email if EMAIL_PATTERN.match(email) else None
