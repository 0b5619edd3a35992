"""Chalet and pool session lookups."""

from typing import TYPE_CHECKING

from resort_core.models import Resource
from resort_core.utils.cache import TTLCache

from .dynamodb import to_item, to_model

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService


class ResourceService:
    """Read-through cache over the ``resources`` table."""

    TABLE = "resources"

    def __init__(self, db: "DynamoDBService", cache: TTLCache | None = None) -> None:
        """Initialize resource service.

        Args:
            db: DynamoDB service instance
            cache: Cache for resource lookups (default: 60 second TTL)
        """
        self.db = db
        self.cache = cache or TTLCache()

    def get_resource(self, resource_id: str) -> Resource | None:
        """Get a resource by ID.

        Args:
            resource_id: Chalet or pool session ID

        Returns:
            Resource or None if not found
        """
        cached = self.cache.get(resource_id)
        if cached is not None:
            return cached

        item = self.db.get_item(self.TABLE, {"resource_id": resource_id})
        if not item:
            return None

        resource = to_model(Resource, item)
        self.cache.set(resource_id, resource)
        return resource

    def save_resource(self, resource: Resource) -> Resource:
        """Create or replace a resource and drop its cached copy."""
        self.db.put_item(self.TABLE, to_item(resource))
        self.cache.invalidate(resource.resource_id)
        return resource
