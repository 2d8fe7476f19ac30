"""Access to the storefront's ``[custom]`` settings in ``domain.toml``."""

from protean.utils.globals import current_domain

_DEFAULTS = {
    "CURRENCY": "INR",
    "FREE_SHIPPING_THRESHOLD": 999.0,
    "STANDARD_SHIPPING_COST": 99.0,
    "LOW_STOCK_THRESHOLD": 5,
    "MAX_STOCK_UPDATE_ATTEMPTS": 5,
    "DELIVERY_WINDOW_DAYS": 14,
}


def setting(name: str):
    """Return a custom setting from the active domain, or its built-in default."""
    custom = current_domain.config.get("custom") or {}
    return custom.get(name, _DEFAULTS[name])
