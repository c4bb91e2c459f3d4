# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

from envelope_pace.storage.file import FileStorage
from envelope_pace.storage.interface import BudgetStorage
from envelope_pace.storage.memory import MemoryStorage

__all__ = ["BudgetStorage", "FileStorage", "MemoryStorage"]
