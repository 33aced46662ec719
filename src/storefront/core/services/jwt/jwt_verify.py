"""Clerk session token verification service."""

import time

from authlib.jose import JoseError, JsonWebKey, jwt
from fastapi import HTTPException
from loguru import logger

from src.storefront.core.models.claims import TokenClaims
from src.storefront.core.services.jwt.jwks import JwksService
from src.storefront.core.services.jwt.jwt_utils import (
    JwtPreview,
    create_token_claims,
    preview_jwt,
)
from src.storefront.runtime.context import get_config


class JwtVerificationService:
    def __init__(self, jwks_service: JwksService):
        self._jwks_service = jwks_service

    async def verify_jwt(
        self,
        token: str,
        *,
        preview: JwtPreview | None = None,
    ) -> TokenClaims:
        """Verify signature, issuer, time claims and azp of a Clerk session token."""
        cfg = get_config()
        clerk = cfg.clerk
        pv = preview or preview_jwt(token)

        # alg allowlist
        if pv.alg not in cfg.jwt.allowed_algorithms:
            raise HTTPException(status_code=401, detail="Disallowed JWT algorithm")

        if not clerk.is_configured:
            raise HTTPException(status_code=500, detail="Authentication not configured")

        expected_issuer = clerk.issuer.rstrip("/")
        if not pv.iss:
            raise HTTPException(status_code=401, detail="Missing iss claim")
        if pv.iss != expected_issuer:
            raise HTTPException(status_code=401, detail="Invalid issuer")

        # fetch JWKS and select by kid once
        jwks = await self._jwks_service.fetch_jwks(clerk.jwks_uri)
        jwk_set = (
            {"keys": [k for k in jwks.get("keys", []) if k.get("kid") == pv.kid]}
            if pv.kid
            else jwks
        )
        if pv.kid and not jwk_set.get("keys"):
            raise HTTPException(status_code=401, detail=f"No JWK matches kid={pv.kid}")
        verification_key = JsonWebKey.import_key_set(jwk_set)

        claims_options = {
            "iss": {"essential": True, "values": [expected_issuer]},
            "sub": {"essential": True},
        }

        # verify signature + registered claims
        try:
            claims = jwt.decode(token, verification_key, claims_options=claims_options)
            claims.validate(leeway=cfg.jwt.clock_skew)
        except (JoseError, ValueError) as exc:
            logger.debug("Rejected session token: {}", exc)
            raise HTTPException(status_code=401, detail=f"JWT error: {exc}") from exc

        # extra temporal sanity
        now = int(time.time())
        for k, check in (
            ("exp", lambda v: now > int(v) + cfg.jwt.clock_skew),
            ("nbf", lambda v: now < int(v) - cfg.jwt.clock_skew),
            ("iat", lambda v: int(v) > now + cfg.jwt.clock_skew),
        ):
            v = claims.get(k)
            if v is not None and check(v):
                raise HTTPException(status_code=401, detail=f"Invalid {k} with skew")

        # Clerk puts the requesting origin in azp
        azp = claims.get("azp")
        allowed_parties = [p.rstrip("/") for p in clerk.authorized_parties if p]
        if azp and allowed_parties and azp.rstrip("/") not in allowed_parties:
            raise HTTPException(status_code=401, detail="Invalid azp")

        if not claims.get("sub"):
            raise HTTPException(status_code=401, detail="Missing sub claim")

        return create_token_claims(token=token, claims=dict(claims))
