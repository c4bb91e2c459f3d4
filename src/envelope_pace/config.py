# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field


class EngineConfig(BaseModel, frozen=True):
    """
    Configuration for an active Budget.

    Attributes:
        default_shuffle_limit_ratio: Fraction of an envelope's allocation
            that may be shuffled into it per period when no explicit limit
            has been set. Applied when envelopes are created and on every
            period rollover.
        plan_horizon: Number of periods (current one included) returned by
            ``Budget.next_periods`` when no count is given.

    Example::

        config = EngineConfig(default_shuffle_limit_ratio=Decimal("0.25"))
        budget = await Budget.open(FileStorage("~/.envelope-pace"), config=config)
    """

    default_shuffle_limit_ratio: Annotated[Decimal, Field(ge=0, le=1)] = Decimal("0.2")
    plan_horizon: Annotated[int, Field(ge=1)] = 3
