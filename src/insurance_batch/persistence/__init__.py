# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Persistence collaborator: predicates and store implementations."""

from .memory_store import MemoryStore
from .postgres_store import PostgresStore
from .predicates import (
    Always,
    And,
    Eq,
    Ge,
    In,
    IsNull,
    Le,
    Lt,
    Ne,
    NotNull,
    Or,
    Predicate,
    all_of,
    any_of,
)
from .store import ContractStore, Entity

__all__ = [
    "MemoryStore",
    "PostgresStore",
    "Always",
    "And",
    "Eq",
    "Ge",
    "In",
    "IsNull",
    "Le",
    "Lt",
    "Ne",
    "NotNull",
    "Or",
    "Predicate",
    "all_of",
    "any_of",
    "ContractStore",
    "Entity",
]
