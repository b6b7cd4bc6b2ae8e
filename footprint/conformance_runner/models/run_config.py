"""Configuration model for starting a test run."""

from pydantic import BaseModel, Field

from footprint.conformance_runner.models.test_case import ApiVersion


class TestRunParams(BaseModel):
    """Parameters supplied by the caller of a conformance run."""

    __test__ = False

    base_url: str = Field(default="", description="Base URL of the tested API")
    client_id: str = Field(default="", description="OAuth client id")
    client_secret: str = Field(default="", description="OAuth client secret")
    version: ApiVersion = Field(..., description="API version to test against")
    organization_name: str = Field(default="", description="Tested organization")
    admin_email: str = Field(default="", description="Contact e-mail")
    admin_name: str = Field(default="", description="Contact name")
    custom_auth_base_url: str | None = Field(
        default=None, description="Auth server base URL when not the API host"
    )
    scope: str | None = Field(default=None, description="OAuth scope")
    audience: str | None = Field(default=None, description="OAuth audience")
    resource: str | None = Field(default=None, description="OAuth resource")

    @property
    def auth_base_url(self) -> str:
        """Base URL used for token endpoint discovery."""
        return self.custom_auth_base_url or self.base_url
