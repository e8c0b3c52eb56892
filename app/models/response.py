from typing import Dict, List

from pydantic import BaseModel, ConfigDict


class PaymentStats(BaseModel):
    """Aggregate payment statistics"""
    totalPayments: int
    totalRevenue: str
    successfulPayments: int
    successRate: str
    failedPayments: int
    pendingPayments: int
    paymentsByDate: Dict[str, float]


class UserMetrics(BaseModel):
    total: int
    new: int
    returning: int


class SessionMetrics(BaseModel):
    total: int
    avgDuration: str
    bounceRate: str


class PageviewMetrics(BaseModel):
    total: int
    perSession: str


class TopPage(BaseModel):
    path: str
    views: int
    uniqueViews: int


class DeviceBreakdown(BaseModel):
    desktop: int
    mobile: int
    tablet: int


class Location(BaseModel):
    country: str
    users: int


class AnalyticsSnapshot(BaseModel):
    """Point-in-time analytics read, live or mock"""
    model_config = ConfigDict(populate_by_name=True)

    users: UserMetrics
    sessions: SessionMetrics
    pageviews: PageviewMetrics
    topPages: List[TopPage]
    devices: DeviceBreakdown
    locations: List[Location]
    source: str
    dataStatus: str
