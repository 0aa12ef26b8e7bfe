"""Configuration records served by a configuration lookup."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class ConfigRecord(BaseModel):
    """A named record with a string-to-string body, addressed by (namespace, name)."""

    model_config = ConfigDict(frozen=True)

    namespace: Annotated[str, Field(description="Namespace the record lives in")]
    name: Annotated[str, Field(description="Record name within the namespace")]
    data: Annotated[
        dict[str, str],
        Field(default_factory=dict, description="Record body"),
    ]
