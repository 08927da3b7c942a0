"""Configuration for the cloud executor."""

from pydantic import BaseModel, SecretStr


class CloudExecutorConfig(BaseModel):
    """Configuration for the cloud executor."""

    api_token: SecretStr
    api_url: str = "https://app.meticulous.ai/api"
    timeout: float = 3600
    poll_interval: float = 5
