"""Config flow for AstroNexus space data integration."""
from __future__ import annotations
import logging
import uuid
from typing import Any, Dict, Optional
import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback

from .const import (
    CONF_ENTRY_NAME,
    CONF_EXPLAINER_API_KEY,
    CONF_LATITUDE,
    CONF_LAUNCH_COUNT,
    CONF_LONGITUDE,
    DEFAULT_LAUNCH_COUNT,
    DOMAIN,
    MAX_LAUNCH_COUNT,
)

launch_count = vol.All(vol.Coerce(int), vol.Range(min=1, max=MAX_LAUNCH_COUNT))

_LOGGER = logging.getLogger(__name__)


def _build_schema(defaults: Dict[str, Any]) -> vol.Schema:
    return vol.Schema(
        {
            vol.Required(CONF_ENTRY_NAME, default=defaults.get(CONF_ENTRY_NAME, "ISS Tracker")): cv.string,
            vol.Required(CONF_LATITUDE, default=defaults.get(CONF_LATITUDE, 0.0)): cv.latitude,
            vol.Required(CONF_LONGITUDE, default=defaults.get(CONF_LONGITUDE, 0.0)): cv.longitude,
            vol.Required(
                CONF_LAUNCH_COUNT, default=defaults.get(CONF_LAUNCH_COUNT, DEFAULT_LAUNCH_COUNT)
            ): launch_count,
            vol.Optional(
                CONF_EXPLAINER_API_KEY, default=defaults.get(CONF_EXPLAINER_API_KEY, "")
            ): cv.string,
        }
    )


def _validate(user_input: Dict[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not user_input.get(CONF_ENTRY_NAME):
        errors['base'] = 'entry_name_required'
    latitude = user_input.get(CONF_LATITUDE)
    longitude = user_input.get(CONF_LONGITUDE)
    if latitude is None or not -90.0 <= float(latitude) <= 90.0:
        errors['base'] = 'invalid_latitude'
    if longitude is None or not -180.0 <= float(longitude) <= 180.0:
        errors['base'] = 'invalid_longitude'
    try:
        count = int(user_input.get(CONF_LAUNCH_COUNT, DEFAULT_LAUNCH_COUNT))
    except (TypeError, ValueError):
        count = 0
    if not 1 <= count <= MAX_LAUNCH_COUNT:
        errors['base'] = 'invalid_launch_count'
    return errors


class CustomFlow(config_entries.ConfigFlow, domain=DOMAIN):
    data: Optional[Dict[str, Any]]

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None):
        errors: Dict[str, str] = {}
        if user_input is not None:
            errors = _validate(user_input)
            if not errors:
                self.data = dict(user_input)
                # Create new guid for the entry
                self.data['guid'] = str(uuid.uuid4())
                return self.async_create_entry(title=f"{self.data[CONF_ENTRY_NAME]}", data=self.data)

        # Default the observer to the Home Assistant home location
        defaults = {
            CONF_LATITUDE: self.hass.config.latitude,
            CONF_LONGITUDE: self.hass.config.longitude,
        }
        return self.async_show_form(step_id="user", data_schema=_build_schema(defaults), errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Get the options flow for this handler."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handles options flow for the component."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self._entry = config_entry

    async def async_step_init(
        self, user_input: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        errors: Dict[str, str] = {}

        # Options override the values the entry was created with
        defaults = {**self._entry.data, **self._entry.options}

        if user_input is not None:
            errors = _validate(user_input)
            if not errors:
                new_data = {**self._entry.data, **user_input, 'guid': self._entry.data['guid']}

                # Rename the entry in the UI
                self.hass.config_entries.async_update_entry(
                    self._entry,
                    data=new_data,
                    title=new_data[CONF_ENTRY_NAME],
                )
                return self.async_create_entry(title=f"{new_data[CONF_ENTRY_NAME]}", data=new_data)

        return self.async_show_form(step_id="init", data_schema=_build_schema(defaults), errors=errors)
