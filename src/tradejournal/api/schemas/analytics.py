"""Pydantic schemas for the analytics endpoint."""

from pydantic import BaseModel, ConfigDict


class AnalyticsResponse(BaseModel):
    """
    Aggregate analytics computed by the AI backend.

    The shape is owned by the backend; only "is a JSON object" is enforced.
    """

    model_config = ConfigDict(extra="allow")

    def to_domain(self) -> dict:
        return self.model_dump()
