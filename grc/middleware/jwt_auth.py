"""
JWT Auth Middleware: parses the bearer token and sets g.principal.

Tokens are issued by the identity provider. A missing, expired or
invalid token leaves g.principal as None; the tenant context middleware
and route decorators decide whether that is acceptable.

Chain order:
  jwt_auth.py  →  tenant_context.py  →  route handler
"""

import logging

import jwt as pyjwt
from flask import g, request

from grc.services.jwt_service import decode_access_token
from grc.services.tenant_scope import Principal

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/health",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.principal = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        if path.startswith(JWT_SKIP_PREFIXES):
            return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]  # Strip "Bearer "

        try:
            claims = decode_access_token(token)
        except pyjwt.ExpiredSignatureError:
            logger.debug("Expired access token on %s", path)
            return
        except pyjwt.InvalidTokenError as exc:
            logger.debug("Invalid access token on %s: %s", path, exc)
            return

        if not claims.get("sub"):
            logger.debug("Access token without subject on %s", path)
            return
        g.principal = Principal.from_claims(claims)
