# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Core infrastructure components for the insurance batch engine."""

from .clock import Clock, FixedClock, SystemClock
from .config import Settings, get_settings
from .errors import CalculationError, NotFoundError, PersistenceError, ValidationError
from .result_types import Err, Ok, Result

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "Settings",
    "get_settings",
    "CalculationError",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
    "Err",
    "Ok",
    "Result",
]
