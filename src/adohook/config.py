"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings

# Globally unique resource identifier for Azure DevOps.
# AAD tokens must carry this GUID as their audience.
ADO_RESOURCE = "499b84ac-1321-427f-aa17-267ca6975798"


class Settings(BaseSettings):
    # Organization whose notification records are queried during verification
    organization_url: str = "https://dev.azure.com/jusmoore"
    ado_resource: str = ADO_RESOURCE

    # Re-fetch every notification from ADO, even when the payload carries a resource
    always_verify: bool = True
    verify_timeout_seconds: float = 10.0

    # Credentials: "managed_identity" (IMDS) or "static"
    credential_source: str = "managed_identity"
    managed_identity_endpoint: str = "http://169.254.169.254/metadata/identity/oauth2/token"
    managed_identity_client_id: str | None = None
    static_token: str | None = None
    token_refresh_margin_seconds: int = 300

    # Local development mode (console logs instead of JSON)
    local_mode: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "ADOHOOK_",
    }

    @property
    def verification_url_base(self) -> str:
        """Organization URL without a trailing slash."""
        return self.organization_url.rstrip("/")


settings = Settings()
