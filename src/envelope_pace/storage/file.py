# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
JSON file storage backend.

The active budget and the period plans live in two documents inside one
directory::

    <directory>/budget.json   the BudgetState aggregate
    <directory>/plans.json    {period_id: {"envelopes": [...], "bills_allocation": ...}}

Each save writes the whole document to a sibling temp file and then
atomically replaces the target, so a crash mid-write leaves the previous
document intact. Corrupt documents are not repaired: both are parsed by
pydantic, so malformed JSON and invalid values alike surface as a
ValidationError.
"""

from __future__ import annotations

import json
from pathlib import Path

import aiofiles
import aiofiles.os
from pydantic import TypeAdapter

from envelope_pace.storage.interface import BudgetStorage
from envelope_pace.types import BudgetState, PeriodPlan

STATE_FILENAME = "budget.json"
PLANS_FILENAME = "plans.json"

_PLANS_ADAPTER: TypeAdapter[dict[str, PeriodPlan]] = TypeAdapter(
    dict[str, PeriodPlan]
)


class FileStorage(BudgetStorage):
    """
    Persistent JSON file storage backend.

    Parameters
    ----------
    directory:
        Directory holding ``budget.json`` and ``plans.json``. Created on the
        first save if it does not exist.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory).expanduser()

    @property
    def state_path(self) -> Path:
        return self._directory / STATE_FILENAME

    @property
    def plans_path(self) -> Path:
        return self._directory / PLANS_FILENAME

    # ─── Active budget ────────────────────────────────────────────────────────

    async def load_state(self) -> BudgetState:
        raw = await self._read(self.state_path)
        if raw is None:
            return BudgetState()
        return BudgetState.model_validate_json(raw)

    async def save_state(self, state: BudgetState) -> None:
        await self._write(self.state_path, state.model_dump_json(indent=2))

    # ─── Period plans ─────────────────────────────────────────────────────────

    async def load_plans(self) -> dict[str, PeriodPlan]:
        raw = await self._read(self.plans_path)
        if raw is None:
            return {}
        return _PLANS_ADAPTER.validate_json(raw)

    async def save_plans(self, plans: dict[str, PeriodPlan]) -> None:
        payload = json.dumps(_PLANS_ADAPTER.dump_python(plans, mode="json"), indent=2, sort_keys=True)
        await self._write(self.plans_path, payload)

    # ─── Private helpers ──────────────────────────────────────────────────────

    async def _read(self, path: Path) -> str | None:
        if not await aiofiles.os.path.exists(path):
            return None
        async with aiofiles.open(path, mode="r", encoding="utf-8") as file_handle:
            return await file_handle.read()

    async def _write(self, path: Path, payload: str) -> None:
        await aiofiles.os.makedirs(self._directory, exist_ok=True)
        temp_path = path.with_name(path.name + ".tmp")
        async with aiofiles.open(temp_path, mode="w", encoding="utf-8") as file_handle:
            await file_handle.write(payload)
        await aiofiles.os.replace(temp_path, path)
