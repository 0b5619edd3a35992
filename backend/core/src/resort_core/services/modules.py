"""Platform module switches (chalets, pool).

Admins can switch a module off; bookings for its resources are then
refused with ``ModuleDisabled``. Status is read on every create request,
so it is cached for a short TTL and invalidated on writes.
"""

import datetime as dt
from typing import TYPE_CHECKING

from resort_core.models import ErrorCode, ModuleDisabled
from resort_core.utils.cache import TTLCache
from resort_core.utils.logging import get_logger

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


class ModuleStatusService:
    """Reads and writes ``{slug, is_active}`` items in the ``modules`` table."""

    TABLE = "modules"

    def __init__(self, db: "DynamoDBService", cache: TTLCache | None = None) -> None:
        self.db = db
        self.cache = cache or TTLCache()

    def is_enabled(self, slug: str) -> bool:
        """Return True unless the module is stored as inactive.

        A module without an item is treated as enabled.
        """
        cached = self.cache.get(slug)
        if cached is not None:
            return bool(cached)

        item = self.db.get_item(self.TABLE, {"slug": slug})
        enabled = bool(item.get("is_active", True)) if item else True
        self.cache.set(slug, enabled)
        return enabled

    def require_enabled(self, slug: str) -> None:
        """Raise ModuleDisabled if the module is switched off."""
        if not self.is_enabled(slug):
            raise ModuleDisabled(ErrorCode.MODULE_DISABLED, details={"module": slug})

    def set_enabled(self, slug: str, enabled: bool, now: dt.datetime | None = None) -> None:
        """Switch a module on or off.

        Args:
            slug: Module slug (``chalets`` or ``pool``)
            enabled: New state
            now: Timestamp recorded on the item
        """
        timestamp = (now or dt.datetime.now(dt.timezone.utc)).isoformat()
        self.db.put_item(
            self.TABLE,
            {"slug": slug, "is_active": enabled, "updated_at": timestamp},
        )
        self.cache.invalidate(slug)
        logger.info("Module status changed", extra={"module_slug": slug, "is_active": enabled})
