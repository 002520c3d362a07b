import logging

import voluptuous as vol

from homeassistant import config_entries, core
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant, ServiceCall, ServiceResponse, SupportsResponse
from homeassistant.helpers.aiohttp_client import async_get_clientsession
import homeassistant.helpers.config_validation as cv

from .const import (
    CONF_EXPLAINER_API_KEY,
    CONF_LAUNCH_COUNT,
    DEFAULT_LAUNCH_COUNT,
    DOMAIN,
    SERVICE_EXPLAIN,
)
from .coordinator import AstroNexusCoordinator, build_caches
from .explainer import explain

PLATFORMS: list[Platform] = [Platform.DEVICE_TRACKER, Platform.SENSOR]
_LOGGER = logging.getLogger(__name__)

EXPLAIN_SCHEMA = vol.Schema({vol.Required("question"): cv.string})


def _merged_entry_data(entry: config_entries.ConfigEntry) -> dict:
    """Config entry data with options applied on top."""
    return {**entry.data, **(entry.options or {})}


async def async_setup(hass: core.HomeAssistant, config: dict) -> bool:
    """Set up the integration and its entry-independent services."""
    hass.data.setdefault(DOMAIN, {})

    async def _handle_explain(call: ServiceCall) -> ServiceResponse:
        api_key_configured = any(
            bool(_merged_entry_data(entry).get(CONF_EXPLAINER_API_KEY))
            for entry in hass.config_entries.async_entries(DOMAIN)
        )
        explanation = explain(call.data["question"], api_key_configured)
        return {
            "intent": explanation.intent,
            "answer": explanation.text,
            "ai_configured": explanation.ai_configured,
        }

    hass.services.async_register(
        DOMAIN,
        SERVICE_EXPLAIN,
        _handle_explain,
        schema=EXPLAIN_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )
    return True


async def async_setup_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Set up platform from a ConfigEntry."""
    entry_data = _merged_entry_data(entry)
    launch_count = int(entry_data.get(CONF_LAUNCH_COUNT, DEFAULT_LAUNCH_COUNT))

    caches = build_caches(async_get_clientsession(hass), launch_count)
    coordinator = AstroNexusCoordinator(hass, entry_data, caches)

    # Raises ConfigEntryNotReady when no source answers at all
    await coordinator.async_config_entry_first_refresh()
    coordinator.async_start_polling()
    entry.runtime_data = coordinator

    entry.async_on_unload(
        entry.add_update_listener(_async_update_listener)
    )

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    return True


async def _async_update_listener(hass: HomeAssistant, config_entry):
    """Handle config options update."""
    # Reload the integration when the options change.
    await hass.config_entries.async_reload(config_entry.entry_id)


async def async_unload_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Unload a config entry."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unloaded:
        await entry.runtime_data.async_shutdown()
    return unloaded
