"""
Token authentication for the API.

Kept in its own module so ``REST_FRAMEWORK`` settings can import the
class without pulling in any views (avoids circular imports while DRF
initialises its authentication classes).
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """``Authorization: Token <key>``; inactive users are rejected by DRF."""

    keyword = 'Token'
