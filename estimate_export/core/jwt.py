"""JWT verification for Supabase access tokens.

Supabase signs access tokens with the project's shared HS256 secret; the
issuer is ``<SUPABASE_URL>/auth/v1`` and the audience ``authenticated``.
"""

import jwt

from estimate_export.core.config import settings
from estimate_export.schemas.auth import JWTClaims
from estimate_export.utils.logging import get_logger

LOGGER = get_logger(__name__)

REQUIRED_CLAIMS = ["sub", "email", "exp", "iat", "iss"]


class JWTVerifier:
    """JWT verifier for Supabase access tokens."""

    def __init__(self, supabase_url: str, jwt_secret: str = "", audience: str = "authenticated"):
        """Initialize JWT verifier.

        Args:
            supabase_url: Supabase project URL for issuer validation
            jwt_secret: Supabase JWT secret for HS256 verification
            audience: Expected ``aud`` claim
        """
        self.supabase_url = supabase_url.rstrip("/")
        self.expected_issuer = f"{self.supabase_url}/auth/v1"
        self.jwt_secret = jwt_secret
        self.audience = audience

        LOGGER.info(f"JWT verifier initialized for issuer: {self.expected_issuer}")

    async def verify_token(self, token: str) -> JWTClaims:
        """Verify and decode a Supabase JWT token.

        Args:
            token: JWT access token from Authorization header

        Returns:
            Decoded and validated JWT claims

        Raises:
            jwt.InvalidTokenError: If the token is invalid, expired or signed
                with an unsupported algorithm
        """
        if not self.jwt_secret:
            LOGGER.error("SUPABASE_JWT_SECRET is not configured; rejecting token")
            raise jwt.InvalidTokenError("Token verification is not configured")

        try:
            header = jwt.get_unverified_header(token)
            if header.get("alg") != "HS256":
                raise jwt.InvalidTokenError(f"Unsupported algorithm: {header.get('alg')}")

            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=["HS256"],
                audience=self.audience,
                issuer=self.expected_issuer,
                options={
                    "verify_exp": True,
                    "verify_iat": True,
                    "verify_iss": True,
                    "require": REQUIRED_CLAIMS,
                },
            )

            claims = JWTClaims(**payload)

            LOGGER.debug(f"Successfully verified token for user: {claims.sub}")
            return claims

        except jwt.ExpiredSignatureError as e:
            LOGGER.warning(f"Token expired: {e}")
            raise jwt.InvalidTokenError("Token has expired") from e
        except jwt.InvalidIssuerError as e:
            LOGGER.warning(f"Invalid issuer: {e}")
            raise jwt.InvalidTokenError("Invalid token issuer") from e
        except jwt.InvalidSignatureError as e:
            LOGGER.warning(f"Invalid signature: {e}")
            raise jwt.InvalidTokenError("Invalid token signature") from e
        except jwt.InvalidTokenError as e:
            LOGGER.warning(f"Invalid token: {e}")
            raise
        except ValueError as e:
            # Claims that decode but fail model validation (e.g. malformed email)
            LOGGER.warning(f"Invalid token claims: {e}")
            raise jwt.InvalidTokenError("Invalid token claims") from e


# Global JWT verifier instance
jwt_verifier = JWTVerifier(
    supabase_url=settings.supabase_url,
    jwt_secret=settings.supabase_jwt_secret,
    audience=settings.supabase.jwt_audience,
)
