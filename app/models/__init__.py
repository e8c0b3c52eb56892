from .internal import CustomerInfo, GatewayPayment
from .request import (
    CreateOrderRequest,
    LoginRequest,
    OtpVerifyRequest,
    PaymentFailedRequest,
    SubscribeRequest,
    VerifyPaymentRequest,
)
from .response import AnalyticsSnapshot, PaymentStats

__all__ = [
    "AnalyticsSnapshot",
    "CreateOrderRequest",
    "CustomerInfo",
    "GatewayPayment",
    "LoginRequest",
    "OtpVerifyRequest",
    "PaymentFailedRequest",
    "PaymentStats",
    "SubscribeRequest",
    "VerifyPaymentRequest",
]
