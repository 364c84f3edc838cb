"""Public re-exports of the unified request/response types.

Example:
    ```python
    from contentgen import types

    request = types.GenerateRequest(
        model="deepseek-chat",
        turns=(types.Turn.user("Hello"),),
    )
    ```
"""

from __future__ import annotations

from contentgen.providers.models import (
    EmbedContentRequest,
    EmbedContentResponse,
    FinishReason,
    GenerateRequest,
    GenerateResponse,
    InlineBinary,
    Part,
    Role,
    Text,
    ToolCall,
    ToolChoiceMode,
    ToolDeclaration,
    ToolResult,
    Turn,
    Usage,
)

__all__ = [
    "EmbedContentRequest",
    "EmbedContentResponse",
    "FinishReason",
    "GenerateRequest",
    "GenerateResponse",
    "InlineBinary",
    "Part",
    "Role",
    "Text",
    "ToolCall",
    "ToolChoiceMode",
    "ToolDeclaration",
    "ToolResult",
    "Turn",
    "Usage",
]
