"""Verification of identity-provider session tokens.

Petnet never issues or validates credentials itself. The identity provider
signs a JWT per session; we only check signature, expiry and (optionally)
issuer/audience, then read the principal from ``sub``.

HS* algorithms verify with ``jwt_secret``; anything else (RS256, ES256, ...)
verifies with the PEM public key at ``jwt_public_key_path``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import jwt

from petnet.config import get_settings

_public_key: str | None = None


def _verification_key() -> str:
    """Shared secret or public key, depending on the configured algorithm."""
    global _public_key  # noqa: PLW0603
    settings = get_settings()
    if settings.jwt_algorithm.upper().startswith("HS"):
        if not settings.jwt_secret:
            msg = "PETNET_JWT_SECRET must be set for HS* token algorithms"
            raise RuntimeError(msg)
        return settings.jwt_secret
    if _public_key is None:
        _public_key = Path(settings.jwt_public_key_path).read_text()
    return _public_key


def reset_keys() -> None:
    """Reset the cached public key (useful for testing)."""
    global _public_key  # noqa: PLW0603
    _public_key = None


def verify_token(token: str) -> dict[str, Any]:
    """
    Decode and verify an identity-provider token.

    Returns:
        The decoded claims; ``sub`` is guaranteed to be present.

    Raises:
        jwt.InvalidTokenError: on bad signature, expiry, issuer/audience mismatch
            or a missing ``sub`` claim.
    """
    settings = get_settings()
    options: dict[str, Any] = {"require": ["exp", "sub"]}
    if settings.jwt_audience is None:
        options["verify_aud"] = False

    return jwt.decode(
        token,
        _verification_key(),
        algorithms=[settings.jwt_algorithm],
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        options=options,
    )
