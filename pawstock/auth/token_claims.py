"""
Display-only reading of bearer token claims.

The signature is NOT verified here. The values are only shown in the UI;
every access decision is made by the server when it validates the token.
"""

from typing import Any, Dict

from jose import JWTError, jwt


def read_display_claims(token: str) -> Dict[str, Any]:
    """Return the token's claims without verification, or {} for opaque/garbled tokens"""
    if not token:
        return {}
    try:
        claims = jwt.get_unverified_claims(token)
    except (JWTError, ValueError):
        return {}
    return claims if isinstance(claims, dict) else {}
