from typing import Optional

from pydantic import BaseModel, ConfigDict


class Usage(BaseModel):
    """
    Token usage figures as reported by the upstream provider.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


__all__ = ["Usage"]
