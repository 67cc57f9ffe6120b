"""Abstract base class for structured-output model backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TypeVar

from pydantic import BaseModel

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class ModelBackend(ABC):
    """A language model that answers with objects validated against a schema."""

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Identifier of the model being invoked."""

    @abstractmethod
    async def generate_object(
        self,
        *,
        system: str,
        prompt: str,
        schema: type[SchemaT],
        object_name: str,
    ) -> SchemaT:
        """Send one request and return the reply validated as ``schema``.

        Implementations raise AIInvocationError for transport failures,
        quota errors, and replies that fail validation.
        """
