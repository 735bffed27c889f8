import hashlib
import hmac

from .exceptions import SignatureInvalid


def compute_signature(message: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_webhook_signature(raw_body: bytes, signature: str, secret: str) -> bool:
    """
    Check the ``x-razorpay-signature`` header against the raw request body.

    ``raw_body`` must be the bytes exactly as received; a re-serialized
    JSON document will not reproduce the processor's digest.
    """
    if not signature or not secret:
        return False
    expected = compute_signature(raw_body or b"", secret)
    return hmac.compare_digest(expected.encode("utf-8"), signature.strip().encode("utf-8"))


def verify_checkout_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    if not (order_id and payment_id and signature and secret):
        return False
    expected = compute_signature(f"{order_id}|{payment_id}".encode("utf-8"), secret)
    return hmac.compare_digest(expected.encode("utf-8"), signature.strip().encode("utf-8"))


def require_webhook_signature(raw_body: bytes, signature: str, secret: str) -> None:
    if not verify_webhook_signature(raw_body, signature, secret):
        raise SignatureInvalid("Signature verification failed")
