import logging
from typing import Optional

from pydantic import ValidationError

from app.trip.models import Trip
from app.trip.sources import TripSource

logger = logging.getLogger(__name__)


class TripLoader:
    """Reads and parses trip documents. Failures are logged and yield None."""

    def __init__(self, source: TripSource):
        self.source = source

    def load(self, resource_id: str) -> Optional[Trip]:
        try:
            with self.source.open(resource_id) as stream:
                raw = stream.read()
        except Exception as e:
            logger.error("Could not read trip resource %s: %s", resource_id, e, exc_info=True)
            return None

        try:
            trip = Trip.model_validate_json(raw)
        except (ValidationError, ValueError) as e:
            logger.error("Error parsing trip resource %s: %s", resource_id, e, exc_info=True)
            return None

        logger.info("Loaded trip %s — %d legs", resource_id, len(trip.journey))
        return trip
