import hmac
import logging
from typing import Optional

from passlib.context import CryptContext

from app.config.settings import AuthConfig
from app.core.auth import create_session_token
from app.core.errors import AuthError, UpstreamError, ValidationError
from app.core.logging import mask_email
from app.services.mailer import MailError, Mailer, otp_email
from app.services.otp import OtpCheck, OtpStore

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")

OTP_FAILURES = {
    OtpCheck.MISSING: "error.otp_not_found",
    OtpCheck.EXPIRED: "error.otp_expired",
    OtpCheck.MISMATCH: "error.otp_invalid",
}


class AuthService:
    """Two-step admin login: static credentials, then an emailed OTP"""

    def __init__(self, auth_config: AuthConfig, otp_store: OtpStore, mailer: Mailer):
        self.auth_config = auth_config
        self.otp_store = otp_store
        self.mailer = mailer

    def verify_password(self, plain_password: str, stored_password: str) -> bool:
        if stored_password.startswith(BCRYPT_PREFIXES):
            return pwd_context.verify(plain_password, stored_password)
        return hmac.compare_digest(plain_password.encode(), stored_password.encode())

    def check_credentials(self, email: str, password: str) -> bool:
        for admin in self.auth_config.admins:
            if admin.email == email and self.verify_password(password, admin.password):
                return True
        return False

    async def login(self, email: Optional[str], password: Optional[str]) -> None:
        if not email or not password:
            raise ValidationError("error.credentials_required")

        if not self.check_credentials(email, password):
            logger.warning(f"Rejected admin login for {mask_email(email)}")
            raise AuthError("error.invalid_credentials")

        code = await self.otp_store.issue(email)
        subject, html, text = otp_email(code, self.auth_config.otp_ttl_minutes)
        try:
            await self.mailer.send(email, subject, html, text)
        except MailError as e:
            logger.error(f"Failed to send OTP to {mask_email(email)}: {e}")
            raise UpstreamError("error.otp_send_failed")

        logger.info(f"OTP sent to {mask_email(email)}")

    async def verify_otp(self, email: Optional[str], otp: Optional[str]) -> dict:
        if not email or not otp:
            raise ValidationError("error.otp_required")

        result = await self.otp_store.verify(email, otp)
        if result != OtpCheck.OK:
            logger.warning(f"OTP check for {mask_email(email)} failed: {result.name}")
            raise AuthError(OTP_FAILURES[result])

        token = create_session_token(email, self.auth_config)
        logger.info(f"Admin session issued for {mask_email(email)}")
        return {"token": token, "admin": {"email": email}}
