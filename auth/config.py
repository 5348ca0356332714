"""Authentication configuration."""

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """
    Authentication configuration.

    Read once at startup. The token signing secret is not part of this model;
    it is loaded separately so it never ends up in a repr or a log line.
    """

    # Tokens
    token_expiry: int | str = Field(
        default="1h",
        description="Token lifetime: integer seconds or a duration such as '30m', '1h', '2 days'",
    )

    # Rate limiting
    rate_limit_window_ms: int = Field(
        default=60_000,
        description="Fixed rate limit window duration in milliseconds",
        ge=1,
    )
    rate_limit_max_requests: int = Field(
        default=20,
        description="Max auth requests per client per window",
        ge=1,
    )

    # Password policy
    password_min_length: int = Field(
        default=8,
        description="Minimum password length; character class rules are fixed",
        ge=1,
        le=1024,
    )
