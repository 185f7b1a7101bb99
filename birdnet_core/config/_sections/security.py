"""Authentication and access control configuration models."""

from datetime import timedelta

from pydantic import BaseModel, Field

from birdnet_core.config._types import Duration


class BasicAuth(BaseModel):
    enabled: bool = False
    password: str = ""
    client_id: str = "birdnet-client"
    client_secret: str = ""
    redirect_uri: str = "/settings"
    auth_code_exp: Duration = timedelta(minutes=10)
    access_token_exp: Duration = timedelta(hours=1)


class SocialProvider(BaseModel):
    enabled: bool = False
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""
    user_id: str = ""


class AllowSubnetBypass(BaseModel):
    enabled: bool = False
    subnet: str = ""  # comma separated CIDR list


class SecuritySettings(BaseModel):
    debug: bool = False
    # hostname for TLS certificates and OAuth redirects, required by auto_tls
    host: str = ""
    auto_tls: bool = False
    redirect_to_https: bool = True
    allow_subnet_bypass: AllowSubnetBypass = Field(default_factory=AllowSubnetBypass)
    basic_auth: BasicAuth = Field(default_factory=BasicAuth)
    google_auth: SocialProvider = Field(
        default_factory=lambda: SocialProvider(redirect_uri="/auth/google/callback")
    )
    github_auth: SocialProvider = Field(
        default_factory=lambda: SocialProvider(redirect_uri="/auth/github/callback")
    )
    session_secret: str = ""
    session_duration: Duration = timedelta(days=7)
