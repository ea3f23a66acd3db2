from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from brokerai.backtest.models import StrategyDefinition


class StrategyCreate(BaseModel):
    name: str = Field(min_length=1)
    kind: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    description: str | None = None


class StrategyUpdate(BaseModel):
    name: str | None = None
    kind: str | None = None
    parameters: dict[str, Any] | None = None
    description: str | None = None
    status: str | None = None


class StrategyResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    kind: str
    parameters: dict[str, Any]
    status: str
    created_at: str
    updated_at: str

    @classmethod
    def from_definition(cls, s: StrategyDefinition) -> StrategyResponse:
        return cls(
            id=s.id,
            name=s.name,
            description=s.description,
            kind=str(s.kind),
            parameters=s.parameters,
            status=str(s.status),
            created_at=s.created_at,
            updated_at=s.updated_at,
        )
