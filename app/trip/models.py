"""
Trip data model (pydantic validation of trip JSON documents).

JSON keys are camelCase (``nodeName``, ``nearbyPlaces``), attributes snake_case.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _TripModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Location(_TripModel):
    """A place descriptor."""
    node_type: Optional[str] = None
    node_name: str
    area_name: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    link: Optional[str] = None


class TripLeg(_TripModel):
    """One stop or segment of a trip."""
    date: Optional[str] = None
    type: str
    location: Location
    stop_duration: Optional[str] = None
    transport_mode: Optional[str] = None
    travel_time: Optional[str] = None
    photos: List[str]
    weather: Optional[str] = None
    temperature: Optional[int] = None
    activity_level: Optional[str] = None
    nearby_places: List[Location] = Field(default_factory=list)

    @field_validator("photos", "nearby_places", mode="before")
    @classmethod
    def _null_list_as_empty(cls, value):
        return [] if value is None else value


class Trip(_TripModel):
    journey: List[TripLeg]
