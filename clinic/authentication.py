"""
Token authentication for the API.

Kept in its own module, away from any views, so Django REST framework can
import it while loading settings without circular imports.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """DRF token authentication using the ``Token`` keyword.

    Subclassed to give the settings a stable import path.
    """

    keyword = 'Token'
