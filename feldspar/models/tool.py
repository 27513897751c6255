from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class ToolSchema(str, Enum):
    """Type tag of a single tool parameter."""

    NUMBER = "number"
    STRING = "string"
    BOOL = "bool"

    def __str__(self) -> str:
        return f"<{self.value}>"


class Tool(BaseModel):
    """Description of an external capability offered to the model.

    A tool is plain data: its handler is the name of whatever the script
    wants to run when the model asks for it.
    """

    model_config = ConfigDict(frozen=True)

    name: Annotated[str, Field(description="Tool name shown to the model")]
    description: Annotated[str, Field(description="What the tool does")]
    schema_: Annotated[
        tuple[tuple[str, ToolSchema], ...],
        Field(alias="schema", description="Ordered (parameter name, type tag) pairs"),
    ] = ()
    handler: Annotated[str, Field(description="Reference to the handler that implements the tool")] = ""

    @property
    def parameters(self) -> tuple[tuple[str, ToolSchema], ...]:
        return self.schema_

    def describe(self) -> str:
        """Render the tool as text for inclusion in a prompt.

        Example:
            >>> tool = Tool(name="weather", description="Get weather", schema=[("city", ToolSchema.STRING)])
            >>> print(tool.describe())
            Name: weather
            Description: Get weather
            Schema: [
              {"city": <string>},
            ]
        """
        lines = [
            f"Name: {self.name}",
            f"Description: {self.description}",
            "Schema: [",
        ]
        lines.extend(f'  {{"{param}": {type_tag!s}}},' for param, type_tag in self.schema_)
        lines.append("]")
        return "\n".join(lines) + "\n"
