import hashlib
import hmac


def hmac_sha256_hex(secret: str, message: str) -> str:
    """Hex HMAC-SHA256 of message keyed by secret"""
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def checkout_signature(secret: str, order_id: str, payment_id: str) -> str:
    """Signature the gateway attaches to a checkout callback"""
    return hmac_sha256_hex(secret, f"{order_id}|{payment_id}")


def signature_matches(expected: str, supplied: str) -> bool:
    return hmac.compare_digest(expected.encode("utf-8"), str(supplied).encode("utf-8"))
