from app.trip.models import Location, Trip, TripLeg
from app.trip.loader import TripLoader
from app.trip.sources import DirectoryTripSource, MongoTripSource, TripSource

__all__ = [
    "Location",
    "Trip",
    "TripLeg",
    "TripLoader",
    "TripSource",
    "DirectoryTripSource",
    "MongoTripSource",
]
