"""Two-outcome results handed to scripts.

Host functions that can legitimately fail without it being exceptional
(such as looking up an environment variable that may not be set) return
``Ok`` or ``Err`` so scripts can branch on ``result.ok``.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ResultError(Exception):
    """Raised when a script unwraps an ``Err``."""

    def __init__(self, error: str):
        self.error = error
        super().__init__(error)


class Ok(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: Annotated[str, Field(description="The successful value")]
    ok: Literal[True] = True

    def unwrap(self) -> str:
        return self.value

    def unwrap_or(self, default: Any) -> str:
        return self.value


class Err(BaseModel):
    model_config = ConfigDict(frozen=True)

    error: Annotated[str, Field(description="Description of the failure")]
    ok: Literal[False] = False

    def unwrap(self) -> str:
        raise ResultError(self.error)

    def unwrap_or(self, default: Any) -> Any:
        return default


Result = Ok | Err
