"""Depot append request models.

These models match the JSON body the cluster's depot append endpoint expects.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AckLevel(str, Enum):
    """Acknowledgment level requested for a depot append."""

    ACK = "ack"  # wait for streaming topologies to process the record (server default)
    APPEND_ACK = "appendAck"  # wait for the depot partition append only
    NONE = "none"  # do not wait


class DepotAppendRequest(BaseModel):
    """Body of a depot append request.

    Attributes:
        data: Record to append; any JSON-representable value
        ack_level: Requested acknowledgment level, server default when omitted
    """

    data: Any = Field(..., description="Record to append")
    ack_level: AckLevel | None = Field(
        default=None, alias="ackLevel", description="Acknowledgment level"
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON-ready wire shape, omitting an unset ack level."""
        body = self.model_dump(mode="json", by_alias=True)
        if body.get("ackLevel") is None:
            body.pop("ackLevel", None)
        return body

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {"data": {"userId": "#__L42", "name": "alice"}, "ackLevel": "appendAck"}
        },
    )
