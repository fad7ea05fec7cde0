"""Service catalog with pricing, durations, and descriptions."""

import logging
from typing import Optional

from salon_booking.schemas.booking_schema import Service

logger = logging.getLogger(__name__)

SERVICE_CATALOG: dict[str, Service] = {
    "1": Service(
        id="1",
        name="Hair Straightening Treatment",
        duration=240,
        price=250,
        description="Our signature treatment for smooth, silky, and straight hair.",
    ),
}


def get_all_services() -> list[Service]:
    """Return all bookable services."""
    return list(SERVICE_CATALOG.values())


def get_service(service_id: str) -> Optional[Service]:
    """Look up a service by id. Returns None if unknown."""
    service = SERVICE_CATALOG.get(service_id.strip())
    if service is None:
        logger.debug("Unknown service id: %s", service_id)
    return service


def default_service() -> Service:
    """The salon's signature service, used when no service is chosen."""
    return SERVICE_CATALOG["1"]
