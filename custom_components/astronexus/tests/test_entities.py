"""
Tests for the sensor and device_tracker platforms: values and availability
rendered from the coordinator's DashboardData snapshot.
"""

from __future__ import annotations

import dataclasses
import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from custom_components.astronexus.coordinator_data import DashboardData
from custom_components.astronexus.device_tracker import ISSTracker
from custom_components.astronexus.device_tracker import async_setup_entry as tracker_setup_entry
from custom_components.astronexus.sensor import (
    SENSOR_TYPES,
    ISSAltitudeSensor,
    ISSVelocitySensor,
    KpIndexSensor,
    NextLaunchSensor,
    NextPassSensor,
    PassDurationSensor,
    SolarWindSpeedSensor,
)
from custom_components.astronexus.sensor import async_setup_entry as sensor_setup_entry

from .test_common import make_coordinator, make_launch, make_pass, make_position, make_weather


def _full_data() -> DashboardData:
    return DashboardData(
        position=make_position(),
        next_pass=make_pass(rise_epoch_s=1_700_000_000, duration_s=600),
        weather=make_weather(),
        launches=(make_launch("a", hour=10), make_launch("b", hour=14)),
    )


class TestSensors(unittest.TestCase):

    def setUp(self):
        self.coord = make_coordinator()
        self.coord.data = _full_data()
        self.coord.last_update_success = True

    def test_unique_ids_are_distinct(self):
        ids = {sensor_type(self.coord).unique_id for sensor_type in SENSOR_TYPES}
        self.assertEqual(len(ids), len(SENSOR_TYPES))
        self.assertIn("astronexus_test-guid_kp_index", ids)

    def test_position_sensors(self):
        self.assertEqual(ISSAltitudeSensor(self.coord).native_value, 418.2)
        self.assertEqual(ISSVelocitySensor(self.coord).native_value, 27580)

    def test_next_pass_sensor(self):
        sensor = NextPassSensor(self.coord)
        self.assertEqual(sensor.native_value, datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc))
        attributes = sensor.extra_state_attributes
        self.assertEqual(attributes["duration_s"], 600)
        self.assertEqual(attributes["set_time"], "2023-11-14T22:23:20+00:00")
        self.assertEqual(attributes["latitude"], 52.52)
        self.assertEqual(PassDurationSensor(self.coord).native_value, 600)

    def test_kp_sensor_is_clamped(self):
        self.coord.data = dataclasses.replace(self.coord.data, weather=make_weather(kp_index=12.0))
        self.assertEqual(KpIndexSensor(self.coord).native_value, 9.0)
        self.coord.data = dataclasses.replace(self.coord.data, weather=make_weather(kp_index=-1.0))
        self.assertEqual(KpIndexSensor(self.coord).native_value, 0.0)

    def test_weather_history_attributes(self):
        self.assertEqual(KpIndexSensor(self.coord).extra_state_attributes["history"], [2.0, 2.33])
        self.assertEqual(SolarWindSpeedSensor(self.coord).native_value, 412.5)
        self.assertEqual(
            SolarWindSpeedSensor(self.coord).extra_state_attributes["history"], [405.1, 412.5]
        )

    def test_next_launch_sensor(self):
        sensor = NextLaunchSensor(self.coord)
        self.assertEqual(sensor.native_value, datetime(2030, 1, 1, 10, 0, tzinfo=timezone.utc))
        attributes = sensor.extra_state_attributes
        self.assertEqual(attributes["provider"], "SpaceX")
        self.assertEqual([item["id"] for item in attributes["upcoming"]], ["a", "b"])

    def test_sensors_unavailable_without_data(self):
        self.coord.data = DashboardData()
        for sensor_type in SENSOR_TYPES:
            with self.subTest(sensor=sensor_type.__name__):
                sensor = sensor_type(self.coord)
                self.assertFalse(sensor.available)
                self.assertIsNone(sensor.native_value)

    def test_one_capability_missing_only_affects_its_sensors(self):
        self.coord.data = dataclasses.replace(self.coord.data, weather=None)
        self.assertFalse(KpIndexSensor(self.coord).available)
        self.assertTrue(ISSAltitudeSensor(self.coord).available)
        self.assertEqual(KpIndexSensor(self.coord).extra_state_attributes, {"history": []})


class TestTracker(unittest.TestCase):

    def setUp(self):
        self.coord = make_coordinator()
        self.coord.data = _full_data()
        self.coord.last_update_success = True

    def test_location(self):
        tracker = ISSTracker(self.coord)
        self.assertEqual(tracker.latitude, 51.5)
        self.assertEqual(tracker.longitude, -0.12)
        self.assertEqual(tracker.source_type, "gps")
        self.assertEqual(tracker.extra_state_attributes["altitude_km"], 418.2)
        self.assertEqual(tracker.unique_id, "astronexus_test-guid_iss_location")

    def test_unavailable_without_position(self):
        self.coord.data = DashboardData()
        tracker = ISSTracker(self.coord)
        self.assertFalse(tracker.available)
        self.assertIsNone(tracker.latitude)
        self.assertEqual(tracker.extra_state_attributes, {})


class TestPlatformSetup(unittest.IsolatedAsyncioTestCase):

    async def test_sensor_setup_adds_every_sensor(self):
        entry = MagicMock()
        entry.runtime_data = make_coordinator()
        add_entities = MagicMock()

        await sensor_setup_entry(MagicMock(), entry, add_entities)

        entities = add_entities.call_args.args[0]
        self.assertEqual(len(entities), len(SENSOR_TYPES))

    async def test_tracker_setup_adds_iss(self):
        entry = MagicMock()
        entry.runtime_data = make_coordinator()
        add_entities = MagicMock()

        await tracker_setup_entry(MagicMock(), entry, add_entities)

        entities = add_entities.call_args.args[0]
        self.assertEqual(len(entities), 1)
        self.assertIsInstance(entities[0], ISSTracker)
