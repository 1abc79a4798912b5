"""Pydantic model for a resolved seed address."""

from pydantic import BaseModel, ConfigDict, Field


class TransportAddress(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str
    port: int = Field(..., ge=0, le=65535)

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"
