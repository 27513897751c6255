from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from feldspar.logging_config import get_logger

logger = get_logger(__name__)


class AdapterKind(str, Enum):
    """Vendor protocol dialect used to talk to a model endpoint."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"
    GEMINI = "gemini"
    GROQ = "groq"
    COHERE = "cohere"

    @classmethod
    def from_name(cls, name: str) -> "AdapterKind":
        """Resolve an adapter name, falling back to OpenAI for anything unknown.

        Matching is case-sensitive: "OpenAI" is not "openai".
        """
        try:
            return cls(name)
        except ValueError:
            logger.warning(f"Unknown adapter {name!r}, falling back to {cls.OPENAI.value!r}")
            return cls.OPENAI


class ModelConfig(BaseModel):
    """The service target used for prompts: endpoint, credential and model identity.

    Instances are immutable. Reconfiguring builds a new instance and swaps it in
    whole, so a reader holding one never sees a partial update.
    """

    model_config = ConfigDict(frozen=True)

    url: Annotated[str, Field(description="Endpoint base URL")] = "https://api.openai.com/v1"
    token: Annotated[str, Field(description="Bearer credential, empty to use the provider's env var", repr=False)] = ""
    model: Annotated[str, Field(description="Model name as the provider knows it")] = "gpt-4o-mini"
    adapter: Annotated[AdapterKind, Field(description="Protocol dialect")] = AdapterKind.OPENAI

    @property
    def model_id(self) -> str:
        """Model identifier in the "provider:model_name" form."""
        return f"{self.adapter.value}:{self.model}"

    @classmethod
    def from_names(cls, url: str, token: str, model: str, adapter: str) -> "ModelConfig":
        return cls(url=url, token=token, model=model, adapter=AdapterKind.from_name(adapter))
