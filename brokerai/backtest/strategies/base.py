"""brokerai.backtest.strategies.base

Strategy rule contract.

A rule is a pure function of the bar window, the bar index and its
parameters. It outputs one signal per bar:

- enter = open a long (only while flat)
- exit  = close the long (only while long)
- hold  = do nothing

The position manager translates signals into trades.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, ValidationError

from brokerai.backtest.bars import BarWindow
from brokerai.backtest.models import StrategyKind
from brokerai.core.exceptions import InputValidationError


class Signal(StrEnum):
    ENTER = "enter"
    EXIT = "exit"
    HOLD = "hold"


class RuleParameters(BaseModel):
    """Base for rule parameter models. Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class StrategyRule(ABC):
    kind: ClassVar[StrategyKind]
    parameters_model: ClassVar[type[RuleParameters]]

    def parse_parameters(self, raw: Mapping[str, Any] | None) -> RuleParameters:
        try:
            return self.parameters_model.model_validate(dict(raw or {}))
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()
            )
            raise InputValidationError(f"invalid {self.kind} parameters: {problems}") from e

    def warmup(self, params: RuleParameters) -> int:
        """Bars of history needed before the first non-hold signal."""

        return 0

    @abstractmethod
    def decide(self, bars: BarWindow, index: int, params: RuleParameters, *, in_position: bool) -> Signal:
        raise NotImplementedError
