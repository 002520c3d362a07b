"""
Platform for the ISS device tracker.
Places the International Space Station on the map at its current sub-satellite point.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from homeassistant.components.device_tracker.config_entry import TrackerEntity
from homeassistant.core import HomeAssistant
from homeassistant import config_entries
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from custom_components.astronexus.coordinator import AstroNexusCoordinator

_LOGGER = logging.getLogger(__name__)


class ISSTracker(CoordinatorEntity[AstroNexusCoordinator], TrackerEntity):
    """
    Representation of the ISS position.
    Takes the data from the coordinator snapshot created in async_setup_entry.
    """

    def __init__(self, coordinator: AstroNexusCoordinator) -> None:
        """Initialize the tracker."""
        super().__init__(coordinator)
        self._attr_unique_id = f"astronexus_{coordinator.entry_data['guid']}_iss_location"
        self._attr_name = "ISS Location"
        self._attr_icon = "mdi:space-station"

    @property
    def device_info(self) -> DeviceInfo | None:
        """Return the device info."""
        return self.coordinator.get_device_info()

    @property
    def available(self) -> bool:
        return super().available and self.coordinator.data.position is not None

    @property
    def latitude(self) -> float | None:
        """Return latitude value of the ISS."""
        position = self.coordinator.data.position
        return None if position is None else position.latitude

    @property
    def longitude(self) -> float | None:
        """Return longitude value of the ISS."""
        position = self.coordinator.data.position
        return None if position is None else position.longitude

    @property
    def source_type(self) -> str:
        """Return the source type, eg gps or router, of the device."""
        return "gps"

    @property
    def extra_state_attributes(self) -> dict:
        position = self.coordinator.data.position
        if position is None:
            return {}
        return {
            "altitude_km": position.altitude_km,
            "velocity_kmh": position.velocity_kmh,
            "observed_at": datetime.fromtimestamp(
                position.observed_at_ms / 1000, tz=timezone.utc
            ).isoformat(),
        }


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add the ISS tracker for passed config_entry in HA."""
    _LOGGER.debug("Starting ISS tracker setup")
    async_add_entities([ISSTracker(config_entry.runtime_data)])
