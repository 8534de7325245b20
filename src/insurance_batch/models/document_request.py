# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Document request model (read-only for the batch engine)."""

from datetime import date, datetime
from enum import Enum

from beartype import beartype
from pydantic import Field

from .base import BaseModelConfig


class RequestStatus(str, Enum):
    """Enumeration of document request states."""

    NEW = "NEW"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


CLOSED_REQUEST_STATUSES: tuple[RequestStatus, ...] = (
    RequestStatus.COMPLETED,
    RequestStatus.CANCELLED,
)


@beartype
class DocumentRequest(BaseModelConfig):
    """Customer request for brochures or application documents."""

    id: int = Field(..., ge=1)
    request_number: str = Field(..., min_length=1, max_length=30)
    status: RequestStatus = Field(...)
    created_at: datetime = Field(...)
    follow_up_date: date | None = Field(None)
    completed_date: datetime | None = Field(None)
