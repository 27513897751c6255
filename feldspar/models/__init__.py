"""Data models for feldspar.

This module contains the Pydantic models shared by the runtime, the host
functions and the script engine.

Available Models:
    - ModelConfig: The service target prompts are sent to
    - AdapterKind: Vendor protocol dialect enumeration
    - Conversation: Ordered conversation history
    - Message: Individual message in a conversation
    - Role: Message role enumeration
    - Tool: Tool descriptor offered to the model
    - ToolSchema: Parameter type tag enumeration
    - Ok / Err: Two-outcome results returned to scripts
"""

from feldspar.models.config import AdapterKind, ModelConfig
from feldspar.models.conversation import Conversation, Message, Role
from feldspar.models.result import Err, Ok, Result, ResultError
from feldspar.models.tool import Tool, ToolSchema

__all__ = [
    "AdapterKind",
    "Conversation",
    "Err",
    "Message",
    "ModelConfig",
    "Ok",
    "Result",
    "ResultError",
    "Role",
    "Tool",
    "ToolSchema",
]
