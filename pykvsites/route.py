"""Route creation for the worker serving a site."""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional

from .api import KVClient
from .exceptions import ConfigError
from .project import AccountMode, Target

logger = logging.getLogger(__name__)


@dataclass
class Route:
    """A route as sent to the API."""

    pattern: str
    script: Optional[str] = None
    enabled: Optional[bool] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the request body, omitting unset fields."""
        return {k: v for k, v in asdict(self).items() if v is not None}


def create_route(
    client: KVClient,
    target: Target,
    mode: AccountMode,
    script: Optional[str] = None,
) -> Route:
    """Create the route configured for a project.

    Multi-script accounts bind the route to a named script. Single-script
    accounts have one implicit script, so ``script`` is ignored and the
    route is created as an enabled filter.

    Args:
        client: API client
        target: Project settings providing ``route`` and ``zone_id``
        mode: Account capability
        script: Script to bind (required for multi-script accounts)

    Returns:
        The created route

    Raises:
        ConfigError: If the project lacks a route or zone, or a multi-script
            account is given no script
    """
    if not target.route:
        raise ConfigError(
            "Your project config has an error, check your `kvsites.toml`: "
            "`route` must be provided."
        )
    if not target.zone_id:
        raise ConfigError(
            "Your project config has an error, check your `kvsites.toml`: "
            "`zone_id` must be provided."
        )

    if mode is AccountMode.MULTI_SCRIPT:
        if not script:
            raise ConfigError(
                "You must provide the name of the script you'd like to "
                "associate with this route."
            )
        route = Route(pattern=target.route, script=script)
        client.put_route(target.zone_id, route.to_dict())
    else:
        if script:
            logger.warning("You only have a single script account. Ignoring name.")
        route = Route(pattern=target.route, enabled=True)
        client.put_filter(target.zone_id, route.to_dict())

    logger.debug(f"Created route {route.pattern} ({mode.value}-script account)")
    return route
