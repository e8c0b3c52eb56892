from .hash import checkout_signature, hmac_sha256_hex
from .locale import get_locale

__all__ = ["checkout_signature", "get_locale", "hmac_sha256_hex"]
