import base64
import json
import time
from dataclasses import dataclass
from typing import Any, Final

from fastapi import HTTPException

from src.storefront.core.models.claims import TokenClaims

# ---------------- tunables ----------------
MAX_JWT_CHARS: Final = 4096
MAX_SEGMENT_CHARS: Final = 4096
MAX_HEADER_BYTES: Final = 8 * 1024
MAX_PAYLOAD_BYTES: Final = 64 * 1024
_ALLOWED: Final = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_."
)  # no '='


# --------------- one-pass prefilter ---------------
def _prefilter_compact_jwt(token: str) -> tuple[str, str, str]:
    if not token or len(token) > MAX_JWT_CHARS:
        raise HTTPException(status_code=401, detail="Invalid JWT size")
    first = second = -1
    for i, ch in enumerate(token):
        if ch not in _ALLOWED:
            raise HTTPException(status_code=401, detail="Invalid JWT characters")
        if ch == ".":
            if first < 0:
                first = i
            elif second < 0:
                second = i
            else:  # third dot
                raise HTTPException(status_code=401, detail="Invalid JWT format")
    if first <= 0 or second - first <= 1 or second >= len(token) - 1:
        raise HTTPException(status_code=401, detail="Invalid JWT format")
    h, p, s = token[:first], token[first + 1 : second], token[second + 1 :]
    if max(len(h), len(p), len(s)) > MAX_SEGMENT_CHARS:
        raise HTTPException(status_code=401, detail="Invalid JWT segment size")
    return h, p, s


def _b64url_decode_unpadded(seg: str, what: str, max_bytes: int) -> bytes:
    pad = (-len(seg)) % 4
    try:
        raw = base64.urlsafe_b64decode((seg + "=" * pad).encode("ascii"))
    except ValueError as e:
        raise HTTPException(
            status_code=401, detail=f"Invalid base64url in {what}"
        ) from e
    if len(raw) > max_bytes:
        raise HTTPException(status_code=401, detail=f"{what} too large")
    return raw


def _decode_json_object(raw: bytes, what: str) -> dict[str, Any]:
    try:
        obj = json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=401, detail=f"Non-UTF8 {what}") from e
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=401, detail=f"Invalid JSON in {what}") from e
    if not isinstance(obj, dict):
        raise HTTPException(status_code=401, detail=f"{what} must be a JSON object")
    return obj


@dataclass(frozen=True)
class JwtPreview:
    header: dict[str, Any]
    claims: dict[str, Any]
    alg: str | None
    kid: str | None
    iss: str | None


def preview_jwt(token: str) -> JwtPreview:
    """Split and decode header+payload exactly once, without verifying anything."""
    h_seg, p_seg, _ = _prefilter_compact_jwt(token)
    h_raw = _b64url_decode_unpadded(h_seg, "JWT header", MAX_HEADER_BYTES)
    p_raw = _b64url_decode_unpadded(p_seg, "JWT payload", MAX_PAYLOAD_BYTES)
    header = _decode_json_object(h_raw, "JWT header")
    claims = _decode_json_object(p_raw, "JWT payload")
    iss = claims.get("iss")
    iss = iss.rstrip("/") if isinstance(iss, str) and iss else None

    return JwtPreview(
        header=header,
        claims=claims,
        alg=header.get("alg"),
        kid=header.get("kid"),
        iss=iss,
    )


def create_token_claims(token: str, claims: dict[str, Any]) -> TokenClaims:
    """Create a TokenClaims instance from verified session token claims.

    Profile fields are read from the names Clerk session token templates commonly
    use (``email``/``primary_email``, ``first_name``/``given_name``...).
    """
    now = int(time.time())

    return TokenClaims(
        raw_token=token,
        issuer=claims.get("iss") or "",
        subject=claims.get("sub") or "",
        authorized_party=claims.get("azp"),
        expires_at=claims.get("exp", now + 60),
        issued_at=claims.get("iat", now),
        not_before=claims.get("nbf"),
        session_id=claims.get("sid"),
        email=claims.get("email") or claims.get("primary_email"),
        name=claims.get("name") or claims.get("full_name"),
        given_name=claims.get("given_name") or claims.get("first_name"),
        family_name=claims.get("family_name") or claims.get("last_name"),
        image_url=claims.get("image_url") or claims.get("picture"),
        all_claims=dict(claims),
    )
