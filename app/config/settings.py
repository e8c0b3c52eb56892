import json
import logging
import os
import secrets
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://localhost:8080",
    "https://pechepurpose.co",
    "https://www.pechepurpose.co",
    "https://pechepurpose.vercel.app",
]


class AdminCredential(BaseModel):
    email: str
    password: str = Field(..., description="Plain password or bcrypt hash")


class AuthConfig(BaseModel):
    admins: List[AdminCredential] = Field(default_factory=list, description="Static admin accounts")
    jwt_secret: Optional[str] = Field(default=None, description="Session token signing secret")
    algorithm: str = Field(default="HS256", description="Session token algorithm")
    token_ttl_hours: int = Field(default=24, ge=1, description="Session lifetime in hours")
    otp_ttl_minutes: int = Field(default=5, ge=1, description="OTP lifetime in minutes")


class GatewayConfig(BaseModel):
    key_id: str = Field(default="", description="Razorpay key id")
    key_secret: str = Field(default="", description="Razorpay key secret")
    currency: str = Field(default="INR", description="Order currency")


class DatabaseConfig(BaseModel):
    url: str = Field(default="sqlite:///./payments.db", description="SQLAlchemy database URL")


class SmtpConfig(BaseModel):
    host: Optional[str] = Field(default=None, description="SMTP host")
    port: int = Field(default=587, description="SMTP port")
    user: Optional[str] = Field(default=None, description="SMTP username")
    password: Optional[str] = Field(default=None, description="SMTP password")
    from_email: Optional[str] = Field(default=None, description="Sender address (defaults to user)")
    from_name: str = Field(default="Pêche", description="Sender display name")
    starttls: bool = Field(default=True, description="Upgrade the connection with STARTTLS")
    timeout: int = Field(default=10, ge=1, description="SMTP timeout in seconds")


class MailConfig(BaseModel):
    admin: SmtpConfig = Field(default_factory=lambda: SmtpConfig(from_name="Pêche Admin"))
    customer: SmtpConfig = Field(default_factory=SmtpConfig)


class StoreConfig(BaseModel):
    name: str = Field(default="Pêche", description="Store name used in emails")
    product_name: str = Field(default="E-book", description="Default product name")
    download_url: Optional[str] = Field(default=None, description="E-book download link")
    timezone: str = Field(default="Asia/Kolkata", description="Timezone for daily stats buckets")


class AnalyticsConfig(BaseModel):
    client_email: Optional[str] = Field(default=None, description="Service account email")
    private_key: Optional[str] = Field(default=None, description="Service account private key (PEM)")
    property_id: Optional[str] = Field(default=None, description="GA4 property id")
    project_id: Optional[str] = Field(default=None, description="Google Cloud project id")
    window_days: int = Field(default=30, ge=1, description="Report window in days")
    top_limit: int = Field(default=10, ge=1, description="Rows for top pages/locations")


class RedisConfig(BaseModel):
    url: Optional[str] = Field(default=None, description="Redis connection URL")
    socket_timeout: int = Field(default=5, description="Redis socket timeout in seconds")


class RateLimitConfig(BaseModel):
    enabled: bool = Field(default=True, description="Enable rate limiting")
    max_requests: int = Field(default=5, ge=1, description="Max requests per window")
    window_seconds: int = Field(default=60, ge=1, description="Rate limit window in seconds")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="%(message)s", description="Log format")
    enable_rich: bool = Field(default=True, description="Enable rich console logging")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class I18nConfig(BaseModel):
    default_locale: str = Field(default="en", description="Default locale")
    supported_locales: list = Field(default=["en", "ja"], description="Supported locales")


class ApiConfig(BaseModel):
    title: str = Field(default="E-book Payments API", description="API title")
    version: str = Field(default="1.0.0", description="API version")
    cors_origins: list = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS), description="CORS allowed origins")
    debug: bool = Field(default=False, description="Enable debug mode")
    port: int = Field(default=4000, description="Listening port")
    public_payment_reads: bool = Field(default=True, description="Expose /payments and /payment/{id} without auth")


class Config(BaseSettings):
    """Main configuration model"""
    model_config = SettingsConfigDict(env_prefix="APP_", env_nested_delimiter="__", extra="ignore")

    api: ApiConfig = Field(default_factory=ApiConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    mail: MailConfig = Field(default_factory=MailConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    i18n: I18nConfig = Field(default_factory=I18nConfig)

    @classmethod
    def load_from_file(cls, config_path: str = "config.json") -> "Config":
        """Load configuration from JSON file"""
        if os.path.exists(config_path):
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    config_data = json.load(f)
                logger.info(f"Configuration loaded from {config_path}")
                return cls(**config_data)
            except Exception as e:
                logger.error(f"Failed to load config from {config_path}: {str(e)}")
                logger.info("Using default configuration")
        else:
            logger.warning(f"Config file {config_path} not found, using defaults")

        return cls()

    @classmethod
    def load_from_env(cls) -> "Config":
        """Load configuration from the flat environment variables used in deployment"""
        config_data = {}

        # API
        api = {}
        if os.getenv("CORS_ORIGINS"):
            api["cors_origins"] = [o.strip() for o in os.getenv("CORS_ORIGINS").split(",") if o.strip()]
        if os.getenv("PORT"):
            api["port"] = int(os.getenv("PORT"))
        if api:
            config_data["api"] = api

        # Admin auth
        auth = {}
        admins = parse_admin_credentials(os.getenv("ADMIN_CREDENTIALS", ""))
        if os.getenv("ADMIN_EMAIL") and os.getenv("ADMIN_PASSWORD"):
            admins.insert(0, {"email": os.getenv("ADMIN_EMAIL"), "password": os.getenv("ADMIN_PASSWORD")})
        if admins:
            auth["admins"] = admins
        if os.getenv("JWT_SECRET"):
            auth["jwt_secret"] = os.getenv("JWT_SECRET")
        if auth:
            config_data["auth"] = auth

        # Razorpay
        gateway = {}
        if os.getenv("RAZORPAY_KEY_ID"):
            gateway["key_id"] = os.getenv("RAZORPAY_KEY_ID")
        if os.getenv("RAZORPAY_KEY_SECRET"):
            gateway["key_secret"] = os.getenv("RAZORPAY_KEY_SECRET")
        if gateway:
            config_data["gateway"] = gateway

        # Database
        if os.getenv("DATABASE_URL"):
            config_data["database"] = {"url": os.getenv("DATABASE_URL")}

        # Mail transports
        mail = {}
        admin_smtp = _smtp_from_env("SMTP_")
        if admin_smtp:
            mail["admin"] = {"from_name": "Pêche Admin", **admin_smtp}
        customer_smtp = _smtp_from_env("CUSTOMER_SMTP_")
        if customer_smtp:
            mail["customer"] = customer_smtp
        if mail:
            config_data["mail"] = mail

        # Store
        if os.getenv("EBOOK_DOWNLOAD_URL"):
            config_data["store"] = {"download_url": os.getenv("EBOOK_DOWNLOAD_URL")}

        # Analytics
        analytics = {}
        if os.getenv("GOOGLE_CLIENT_EMAIL"):
            analytics["client_email"] = os.getenv("GOOGLE_CLIENT_EMAIL")
        if os.getenv("GOOGLE_PRIVATE_KEY"):
            analytics["private_key"] = os.getenv("GOOGLE_PRIVATE_KEY")
        if os.getenv("GOOGLE_PROJECT_ID"):
            analytics["project_id"] = os.getenv("GOOGLE_PROJECT_ID")
        property_id = os.getenv("GA_PROPERTY_ID") or os.getenv("VITE_GA_MEASUREMENT_ID")
        if property_id:
            analytics["property_id"] = property_id
        if analytics:
            config_data["analytics"] = analytics

        # Redis
        if os.getenv("REDIS_URL"):
            config_data["redis"] = {"url": os.getenv("REDIS_URL")}

        # Rate limiting
        rate_limit = {}
        if os.getenv("RATE_LIMIT_REQUESTS"):
            rate_limit["max_requests"] = int(os.getenv("RATE_LIMIT_REQUESTS"))
        if os.getenv("RATE_LIMIT_WINDOW"):
            rate_limit["window_seconds"] = int(os.getenv("RATE_LIMIT_WINDOW"))
        if rate_limit:
            config_data["rate_limit"] = rate_limit

        # Logging
        if os.getenv("LOG_LEVEL"):
            config_data["logging"] = {"level": os.getenv("LOG_LEVEL")}

        # i18n
        if os.getenv("DEFAULT_LOCALE"):
            config_data["i18n"] = {"default_locale": os.getenv("DEFAULT_LOCALE")}

        return cls(**config_data)


def parse_admin_credentials(raw: str) -> List[dict]:
    """Parse "email:password,email2:password2" into credential dicts"""
    admins = []
    for item in raw.split(","):
        email, sep, password = item.strip().partition(":")
        if not sep or not email or not password:
            continue
        admins.append({"email": email.strip(), "password": password})
    return admins


def _smtp_from_env(prefix: str) -> dict:
    smtp = {}
    if os.getenv(f"{prefix}HOST"):
        smtp["host"] = os.getenv(f"{prefix}HOST")
    if os.getenv(f"{prefix}PORT"):
        smtp["port"] = int(os.getenv(f"{prefix}PORT"))
    if os.getenv(f"{prefix}USER"):
        smtp["user"] = os.getenv(f"{prefix}USER")
    if os.getenv(f"{prefix}PASS"):
        smtp["password"] = os.getenv(f"{prefix}PASS")
    if os.getenv(f"{prefix}FROM"):
        smtp["from_email"] = os.getenv(f"{prefix}FROM")
    return smtp


def load_config() -> Config:
    """Load configuration with priority: config.json > env vars > defaults"""
    load_dotenv()
    config_path = os.getenv("CONFIG_PATH", "config.json")

    if os.path.exists(config_path):
        loaded = Config.load_from_file(config_path)
    else:
        logger.info(f"Config file not found at {config_path}, checking environment variables")
        loaded = Config.load_from_env()

    if not loaded.auth.jwt_secret:
        logger.warning("JWT_SECRET is not set; using a random per-process secret")
        loaded.auth.jwt_secret = secrets.token_urlsafe(32)
    if not loaded.mail.customer.host:
        loaded.mail.customer = loaded.mail.admin.model_copy(update={"from_name": loaded.mail.customer.from_name})

    return loaded


config = load_config()
