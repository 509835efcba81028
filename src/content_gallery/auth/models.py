"""Data models for OAuth client-credentials authentication."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class OAuthTokenResponse(BaseModel):
    """Token endpoint response for the client-credentials grant."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(min_length=1)
    expires_in: int = Field(ge=0, description="Lifetime of the token in seconds")
    token_type: str = "Bearer"
    scope: str | None = None


@dataclass(frozen=True)
class TokenState:
    """Cached credential and the monotonic time it expires at.

    Instances are immutable; a refresh replaces the whole state so readers
    never observe a value paired with another token's expiry.
    """

    value: str | None = None
    expiry: float | None = None

    def __post_init__(self) -> None:
        if self.expiry is not None and self.value is None:
            raise ValueError("TokenState with an expiry must carry a value")

    def is_fresh(self, now: float, margin: float) -> bool:
        """Whether the credential can still be used at ``now``."""
        if self.value is None or self.expiry is None:
            return False
        return now < self.expiry - margin


class ClientCredentials(BaseModel):
    """OAuth client registration used for the client-credentials grant."""

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(min_length=1)
    client_secret: str = ""
    scope: str | None = None
    issuer_url: str = Field(min_length=1)
