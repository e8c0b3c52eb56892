import asyncio
import logging
import random
from typing import Any, List, Optional

from google.analytics.data_v1beta import BetaAnalyticsDataAsyncClient
from google.analytics.data_v1beta.types import (
    DateRange,
    Dimension,
    Metric,
    OrderBy,
    RunReportRequest,
)
from google.oauth2 import service_account

from app.config.settings import AnalyticsConfig
from app.core.errors import UpstreamError
from app.models.response import AnalyticsSnapshot

logger = logging.getLogger(__name__)

PEM_MARKER = "BEGIN PRIVATE KEY"
TOKEN_URI = "https://oauth2.googleapis.com/token"
DEVICE_CATEGORIES = ("desktop", "mobile", "tablet")
SETUP_ERROR_MARKERS = ("PERMISSION_DENIED", "UNAUTHENTICATED", "NOT_FOUND", "not found", "credentials")

MOCK_TOP_PAGES = [
    {"path": "/", "views": 3456, "uniqueViews": 2345},
    {"path": "/products", "views": 2876, "uniqueViews": 1987},
    {"path": "/about", "views": 1567, "uniqueViews": 1234},
    {"path": "/contact", "views": 987, "uniqueViews": 876},
    {"path": "/blog", "views": 765, "uniqueViews": 654},
]
MOCK_LOCATIONS = [
    {"country": "United States", "users": 2345},
    {"country": "India", "users": 1234},
    {"country": "United Kingdom", "users": 567},
    {"country": "Canada", "users": 456},
    {"country": "Australia", "users": 345},
]
MOCK_DEVICES = {"desktop": 45, "mobile": 52, "tablet": 3}


def format_duration(seconds: float) -> str:
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}m {secs}s"


def _int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _first_metric(report, index: int) -> Optional[str]:
    rows = list(getattr(report, "rows", None) or [])
    if not rows or len(rows[0].metric_values) <= index:
        return None
    return rows[0].metric_values[index].value


def _share(part: int, total: int) -> int:
    """Rounded half up; each category independently"""
    if total <= 0:
        return 0
    return int(part * 100 / total + 0.5)


def looks_like_setup_problem(error: Exception) -> bool:
    message = str(error)
    return any(marker in message for marker in SETUP_ERROR_MARKERS)


def process_reports(users, sessions, pageviews, top_pages, devices, locations) -> dict:
    """Fold the six report responses into the snapshot shape"""
    total_users = new_users = returning_users = 0
    for row in getattr(users, "rows", None) or []:
        count = _int(row.metric_values[0].value)
        total_users += count
        if row.dimension_values[0].value == "new":
            new_users = count
        else:
            returning_users = count

    session_total = _int(_first_metric(sessions, 0))
    avg_duration = _float(_first_metric(sessions, 1))
    bounce_rate = _float(_first_metric(sessions, 2))

    pageview_total = _int(_first_metric(pageviews, 0))
    per_session = _float(_first_metric(pageviews, 1))

    pages = [
        {
            "path": row.dimension_values[0].value,
            "views": _int(row.metric_values[0].value),
            "uniqueViews": _int(row.metric_values[1].value),
        }
        for row in getattr(top_pages, "rows", None) or []
    ]

    device_users = {category: 0 for category in DEVICE_CATEGORIES}
    device_total = 0
    for row in getattr(devices, "rows", None) or []:
        count = _int(row.metric_values[0].value)
        device_total += count
        category = row.dimension_values[0].value.lower()
        if category in device_users:
            device_users[category] = count

    places = [
        {"country": row.dimension_values[0].value, "users": _int(row.metric_values[0].value)}
        for row in getattr(locations, "rows", None) or []
    ]

    return {
        "users": {"total": total_users, "new": new_users, "returning": returning_users},
        "sessions": {
            "total": session_total,
            "avgDuration": format_duration(avg_duration),
            # GA4 reports bounce rate as a ratio
            "bounceRate": f"{bounce_rate * 100:.1f}%",
        },
        "pageviews": {"total": pageview_total, "perSession": f"{per_session:.1f}"},
        "topPages": pages,
        "devices": {category: _share(device_users[category], device_total) for category in DEVICE_CATEGORIES},
        "locations": places,
    }


class AnalyticsService:
    """Google Analytics Data API adapter with a mock fallback"""

    def __init__(
        self,
        analytics_config: AnalyticsConfig,
        client: Optional[Any] = None,
        rng: Optional[random.Random] = None,
    ):
        self.analytics_config = analytics_config
        self._client = client
        self.rng = rng or random.Random()

    @property
    def private_key(self) -> Optional[str]:
        key = self.analytics_config.private_key
        return key.replace("\\n", "\n") if key else key

    def missing_settings(self) -> List[str]:
        required = {
            "client_email": self.analytics_config.client_email,
            "private_key": self.analytics_config.private_key,
            "property_id": self.analytics_config.property_id,
        }
        return [name for name, value in required.items() if not value]

    def is_configured(self) -> bool:
        missing = self.missing_settings()
        if missing:
            logger.debug(f"Analytics settings missing: {missing}")
            return False
        if PEM_MARKER not in self.private_key:
            logger.warning("Analytics private key appears to be malformed")
            return False
        return True

    def client(self):
        if self._client is None:
            credentials = service_account.Credentials.from_service_account_info({
                "type": "service_account",
                "client_email": self.analytics_config.client_email,
                "private_key": self.private_key,
                "project_id": self.analytics_config.project_id,
                "token_uri": TOKEN_URI,
            })
            self._client = BetaAnalyticsDataAsyncClient(credentials=credentials)
        return self._client

    def _request(self, metrics, dimensions=None, order_by=None, limit=None) -> RunReportRequest:
        request = RunReportRequest(
            property=f"properties/{self.analytics_config.property_id}",
            date_ranges=[DateRange(start_date=f"{self.analytics_config.window_days}daysAgo", end_date="today")],
            metrics=[Metric(name=name) for name in metrics],
            dimensions=[Dimension(name=name) for name in dimensions or []],
        )
        if order_by:
            request.order_bys = [OrderBy(metric=OrderBy.MetricOrderBy(metric_name=order_by), desc=True)]
        if limit:
            request.limit = limit
        return request

    async def fetch_live(self) -> AnalyticsSnapshot:
        """All six reports or nothing: the first failure propagates"""
        client = self.client()
        top = self.analytics_config.top_limit
        requests = [
            self._request(["activeUsers"], ["newVsReturning"]),
            self._request(["sessions", "averageSessionDuration", "bounceRate"]),
            self._request(["screenPageViews", "screenPageViewsPerSession"]),
            self._request(["screenPageViews", "totalUsers"], ["pagePath"], order_by="screenPageViews", limit=top),
            self._request(["activeUsers"], ["deviceCategory"]),
            self._request(["activeUsers"], ["country"], order_by="activeUsers", limit=top),
        ]
        reports = await asyncio.gather(*(client.run_report(request=r) for r in requests))

        data = process_reports(*reports)
        logger.info("Live analytics data processed")
        return AnalyticsSnapshot(**data, source="google_analytics", dataStatus="live")

    def mock_snapshot(self) -> AnalyticsSnapshot:
        rng = self.rng
        total_users = rng.randint(1000, 5999)
        new_users = int(total_users * 0.7)
        return AnalyticsSnapshot(
            users={"total": total_users, "new": new_users, "returning": total_users - new_users},
            sessions={
                "total": int(total_users * 1.2),
                "avgDuration": format_duration(rng.random() * 120 + 60),
                "bounceRate": f"{rng.random() * 20 + 30:.1f}%",
            },
            pageviews={"total": int(total_users * 3.5), "perSession": f"{rng.random() * 2 + 2.5:.1f}"},
            topPages=MOCK_TOP_PAGES,
            devices=MOCK_DEVICES,
            locations=MOCK_LOCATIONS,
            source="mock_data",
            dataStatus="demo",
        )

    async def get_snapshot(self, strict: bool = False) -> AnalyticsSnapshot:
        """
        Live data when configured, mock data otherwise.
        With strict=True a failing live fetch raises instead of degrading to mock data.
        """
        if not self.is_configured():
            logger.info("Analytics not configured, returning mock data")
            return self.mock_snapshot()

        try:
            return await self.fetch_live()
        except Exception as e:
            setup_required = looks_like_setup_problem(e)
            logger.error(f"Error fetching from Google Analytics: {e}")
            if strict:
                raise UpstreamError("error.analytics_failed", setup_required=setup_required)
            logger.info("Falling back to mock analytics data")
            return self.mock_snapshot()
