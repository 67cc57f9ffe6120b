"""Configuration for the grader, loaded from env vars or CLI args."""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings

DEFAULT_MODEL = "anthropic.claude-3-5-sonnet-20241022-v2:0"


class GraderConfig(BaseSettings):
    """Grader run configuration, loaded from env vars or CLI args."""

    model_config = {"env_prefix": "AI_GRADER_"}

    model: str = Field(default=DEFAULT_MODEL, description="Bedrock model ID to use")

    # Scanning
    concurrency: int = Field(default=5, ge=1, description="Simultaneous file reads")
    max_files: int = Field(default=50, ge=1, description="Maximum files to read per scan")
    max_file_bytes: int = Field(
        default=50_000, ge=0, description="Files larger than this are skipped"
    )

    # Model invocation
    request_timeout: float = Field(
        default=120.0, gt=0, description="Read timeout per model call in seconds"
    )
    max_retries: int = Field(
        default=3, ge=0, description="Retries per model call (standard backoff)"
    )
    max_tokens: int = Field(default=4096, ge=1, description="Max output tokens per model call")
    temperature: float = Field(default=0.3, ge=0.0, le=1.0, description="Sampling temperature")

    # Display
    verbose: bool = Field(default=False, description="Debug logging")


class BedrockCredentials(BaseSettings):
    """AWS credentials for the Bedrock runtime, read from the standard AWS env vars."""

    model_config = {"env_prefix": "AWS_"}

    access_key_id: str = Field(description="AWS_ACCESS_KEY_ID")
    secret_access_key: SecretStr = Field(description="AWS_SECRET_ACCESS_KEY")
    session_token: SecretStr | None = Field(default=None, description="AWS_SESSION_TOKEN")
    region: str = Field(default="us-east-1", description="AWS_REGION")
