import base64
import time
from typing import Any

from authlib.jose import jwt


def oct_jwk(key: bytes, kid: str) -> dict[str, str]:
    return {
        "kty": "oct",
        "k": base64.urlsafe_b64encode(key).rstrip(b"=").decode("ascii"),
        "alg": "HS256",
        "kid": kid,
    }


def sign_token(
    key: bytes, kid: str, issuer: str, subject: str, **claims: Any
) -> str:
    """HS256 session token shaped like the ones Clerk issues."""
    now = int(time.time())
    payload = {
        "iss": issuer,
        "sub": subject,
        "iat": now,
        "nbf": now,
        "exp": now + 600,
        "sid": "sess_test",
        **claims,
    }
    token = jwt.encode({"alg": "HS256", "kid": kid, "typ": "JWT"}, payload, key)
    return token.decode("ascii")
