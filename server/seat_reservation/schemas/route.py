"""Route-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class CreateRouteRequest(BaseModel):
    """Request schema for creating a route."""

    origin: str = Field(..., max_length=120, description="Departure city")
    destination: str = Field(..., max_length=120, description="Arrival city")

    @field_validator("origin", "destination")
    @classmethod
    def validate_city(cls, v: str) -> str:
        """City names are trimmed and must keep at least two characters."""
        v = v.strip()
        if len(v) < 2:
            raise ValueError("City names too short")
        return v


class SetRouteActiveRequest(BaseModel):
    """Request schema for enabling or disabling a route."""

    route_id: str = Field(..., description="Route to update")
    is_active: bool = Field(..., description="New active flag")


class DeleteRouteRequest(BaseModel):
    """Request schema for deleting a route and everything that depends on it."""

    route_id: str = Field(..., description="Route to delete")


class Route(BaseModel):
    """Route response schema."""

    id: str = Field(..., description="Unique route ID")
    origin: str = Field(..., description="Departure city")
    destination: str = Field(..., description="Arrival city")
    label: str = Field(..., description="Display label")
    is_active: bool = Field(..., description="Whether the route is offered to passengers")
    created_at: datetime | None = Field(None, description="Creation time (ISO 8601)")

    class Config:
        from_attributes = True
