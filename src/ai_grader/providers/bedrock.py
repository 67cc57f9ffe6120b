"""AWS Bedrock backend using the Converse API with a forced tool for structured output."""

from __future__ import annotations

import asyncio
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from ai_grader.config import DEFAULT_MODEL, BedrockCredentials
from ai_grader.errors import AIInvocationError
from ai_grader.log import get_logger
from ai_grader.providers.base import ModelBackend, SchemaT

logger = get_logger("bedrock")


def build_tool_config(schema: type[SchemaT], object_name: str) -> dict[str, Any]:
    """Offer ``schema`` as the only tool and force the model to call it."""
    return {
        "tools": [
            {
                "toolSpec": {
                    "name": object_name,
                    "description": f"Return the {object_name} as structured data.",
                    "inputSchema": {"json": schema.model_json_schema()},
                }
            }
        ],
        "toolChoice": {"tool": {"name": object_name}},
    }


def extract_tool_input(response: dict[str, Any], object_name: str) -> dict[str, Any]:
    """Pull the forced tool call's input out of a Converse response."""
    message = response.get("output", {}).get("message", {})
    for block in message.get("content", []):
        if not isinstance(block, dict):
            continue
        tool_use = block.get("toolUse")
        if isinstance(tool_use, dict) and tool_use.get("name") == object_name:
            payload = tool_use.get("input")
            if isinstance(payload, dict):
                return payload
    stop_reason = response.get("stopReason", "unknown")
    raise AIInvocationError(
        object_name, f"no structured output in reply (stop reason: {stop_reason})"
    )


class BedrockBackend(ModelBackend):
    """Structured-output requests against a Bedrock-hosted model."""

    def __init__(
        self,
        credentials: BedrockCredentials,
        model_id: str = DEFAULT_MODEL,
        *,
        max_tokens: int = 4096,
        temperature: float = 0.3,
        timeout: float = 120.0,
        max_retries: int = 3,
        client: Any | None = None,
    ) -> None:
        self._model_id = model_id
        self._max_tokens = max_tokens
        self._temperature = temperature
        if client is None:
            session_token = credentials.session_token
            client = boto3.client(
                "bedrock-runtime",
                region_name=credentials.region,
                aws_access_key_id=credentials.access_key_id,
                aws_secret_access_key=credentials.secret_access_key.get_secret_value(),
                aws_session_token=session_token.get_secret_value() if session_token else None,
                config=Config(
                    connect_timeout=10,
                    read_timeout=timeout,
                    retries={"max_attempts": max_retries, "mode": "standard"},
                ),
            )
        self._client = client

    @property
    def model_id(self) -> str:
        return self._model_id

    async def generate_object(
        self,
        *,
        system: str,
        prompt: str,
        schema: type[SchemaT],
        object_name: str,
    ) -> SchemaT:
        request = {
            "modelId": self._model_id,
            "system": [{"text": system}],
            "messages": [{"role": "user", "content": [{"text": prompt}]}],
            "inferenceConfig": {
                "maxTokens": self._max_tokens,
                "temperature": self._temperature,
            },
            "toolConfig": build_tool_config(schema, object_name),
        }

        logger.debug("Requesting %s from %s", object_name, self._model_id)
        try:
            response = await asyncio.to_thread(self._client.converse, **request)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "ClientError")
            raise AIInvocationError(object_name, f"{code}: {e}") from e
        except BotoCoreError as e:
            raise AIInvocationError(object_name, str(e)) from e

        usage = response.get("usage")
        if usage:
            logger.debug(
                "%s used %s input / %s output tokens",
                object_name,
                usage.get("inputTokens"),
                usage.get("outputTokens"),
            )

        payload = extract_tool_input(response, object_name)
        try:
            return schema.model_validate(payload)
        except ValidationError as e:
            raise AIInvocationError(
                object_name, f"reply did not match schema ({e.error_count()} errors)"
            ) from e
