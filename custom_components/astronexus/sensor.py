"""
Platform for AstroNexus sensor integration.
This module is responsible for setting up the ISS, pass, space-weather and launch
sensor entities and rendering them from the coordinator's DashboardData snapshot.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from homeassistant.components.sensor import SensorDeviceClass, SensorEntity, SensorStateClass
from homeassistant.core import HomeAssistant
from homeassistant import config_entries
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from custom_components.astronexus.coordinator import AstroNexusCoordinator

_LOGGER = logging.getLogger(__name__)


class AstroNexusSensor(CoordinatorEntity[AstroNexusCoordinator], SensorEntity):
    """
    Base class for all AstroNexus sensors.
    Subclasses read one capability from the coordinator snapshot.
    """

    capability: str = ""
    key: str = ""

    def __init__(self, coordinator: AstroNexusCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator)
        guid = coordinator.entry_data["guid"]
        self._attr_unique_id = f"astronexus_{guid}_{self.key}"

    @property
    def device_info(self) -> DeviceInfo | None:
        """Return the device info."""
        return self.coordinator.get_device_info()

    @property
    def available(self) -> bool:
        return super().available and getattr(self.coordinator.data, self.capability, None) is not None


class ISSAltitudeSensor(AstroNexusSensor):
    capability = "position"
    key = "altitude"
    _attr_name = "ISS Altitude"
    _attr_icon = "mdi:arrow-up-bold"
    _attr_device_class = SensorDeviceClass.DISTANCE
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = "km"

    @property
    def native_value(self) -> float | None:
        position = self.coordinator.data.position
        if position is None:
            return None
        return round(position.altitude_km, 1)


class ISSVelocitySensor(AstroNexusSensor):
    capability = "position"
    key = "velocity"
    _attr_name = "ISS Velocity"
    _attr_icon = "mdi:speedometer"
    _attr_device_class = SensorDeviceClass.SPEED
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = "km/h"

    @property
    def native_value(self) -> float | None:
        position = self.coordinator.data.position
        if position is None:
            return None
        return round(position.velocity_kmh)


class NextPassSensor(AstroNexusSensor):
    """Rise time of the next ISS pass over the configured observer."""

    capability = "next_pass"
    key = "next_pass"
    _attr_name = "ISS Next Pass"
    _attr_icon = "mdi:telescope"
    _attr_device_class = SensorDeviceClass.TIMESTAMP

    @property
    def native_value(self) -> datetime | None:
        prediction = self.coordinator.data.next_pass
        if prediction is None:
            return None
        return datetime.fromtimestamp(prediction.rise_epoch_s, tz=timezone.utc)

    @property
    def extra_state_attributes(self) -> dict:
        prediction = self.coordinator.data.next_pass
        observer = self.coordinator.observer
        attributes = {"latitude": observer.latitude, "longitude": observer.longitude}
        if prediction is not None:
            attributes["duration_s"] = prediction.duration_s
            attributes["set_time"] = datetime.fromtimestamp(
                prediction.set_epoch_s, tz=timezone.utc
            ).isoformat()
            attributes["source"] = prediction.source
        return attributes


class PassDurationSensor(AstroNexusSensor):
    capability = "next_pass"
    key = "pass_duration"
    _attr_name = "ISS Pass Duration"
    _attr_icon = "mdi:timer-outline"
    _attr_device_class = SensorDeviceClass.DURATION
    _attr_native_unit_of_measurement = "s"

    @property
    def native_value(self) -> int | None:
        prediction = self.coordinator.data.next_pass
        return None if prediction is None else prediction.duration_s


class KpIndexSensor(AstroNexusSensor):
    capability = "weather"
    key = "kp_index"
    _attr_name = "Planetary Kp Index"
    _attr_icon = "mdi:magnet"
    _attr_state_class = SensorStateClass.MEASUREMENT

    @property
    def native_value(self) -> float | None:
        weather = self.coordinator.data.weather
        if weather is None:
            return None
        # Make sure value is between 0 and 9
        return min(max(weather.kp_index, 0.0), 9.0)

    @property
    def extra_state_attributes(self) -> dict:
        weather = self.coordinator.data.weather
        return {"history": list(weather.kp_history) if weather else []}


class SolarWindSpeedSensor(AstroNexusSensor):
    capability = "weather"
    key = "solar_wind_speed"
    _attr_name = "Solar Wind Speed"
    _attr_icon = "mdi:weather-windy"
    _attr_device_class = SensorDeviceClass.SPEED
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = "km/s"

    @property
    def native_value(self) -> float | None:
        weather = self.coordinator.data.weather
        return None if weather is None else weather.solar_wind_speed_kms

    @property
    def extra_state_attributes(self) -> dict:
        weather = self.coordinator.data.weather
        return {"history": list(weather.solar_wind_history) if weather else []}


class NextLaunchSensor(AstroNexusSensor):
    """Time of the next scheduled launch, with the full upcoming list as attributes."""

    capability = "next_launch"
    key = "next_launch"
    _attr_name = "Next Launch"
    _attr_icon = "mdi:rocket-launch"
    _attr_device_class = SensorDeviceClass.TIMESTAMP

    @property
    def native_value(self) -> datetime | None:
        launch = self.coordinator.data.next_launch
        return None if launch is None else launch.launch_time

    @property
    def extra_state_attributes(self) -> dict:
        launch = self.coordinator.data.next_launch
        if launch is None:
            return {"upcoming": []}
        return {
            "name": launch.name,
            "provider": launch.provider,
            "vehicle": launch.vehicle,
            "site": launch.site,
            "status": launch.status,
            "mission": launch.mission_name,
            "payload": launch.payload_description,
            "info_url": launch.info_url,
            "upcoming": [
                {
                    "id": item.id,
                    "name": item.name,
                    "provider": item.provider,
                    "launch_time": item.launch_time.isoformat(),
                    "status": item.status,
                }
                for item in self.coordinator.data.launches
            ],
        }


SENSOR_TYPES = (
    ISSAltitudeSensor,
    ISSVelocitySensor,
    NextPassSensor,
    PassDurationSensor,
    KpIndexSensor,
    SolarWindSpeedSensor,
    NextLaunchSensor,
)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add sensors for passed config_entry in HA."""
    coordinator: AstroNexusCoordinator = config_entry.runtime_data
    _LOGGER.debug("Adding AstroNexus sensors for %s", coordinator.entry_data.get("entry_name"))
    async_add_entities([sensor_type(coordinator) for sensor_type in SENSOR_TYPES])
