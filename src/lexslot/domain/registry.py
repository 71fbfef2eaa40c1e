"""Static catalog of schedulable resources.

The registry is loaded once at startup and is read-only afterwards, so a
single instance can be shared by concurrent validation calls.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from lexslot.domain.models import Resource
from lexslot.errors import InvalidInputError, ResourceNotFoundError

logger = logging.getLogger(__name__)


class ResourceRegistry:
    """Read-only lookup of resources by id, name or email.

    Example:
        >>> registry = ResourceRegistry.from_json_file("lawyerData.json")
        >>> registry.get("DH").break_minutes
        15
    """

    def __init__(self, resources: Iterable[Resource]):
        by_id: dict[str, Resource] = {}
        for resource in resources:
            if resource.id in by_id:
                raise InvalidInputError(f"Duplicate resource id: {resource.id}")
            by_id[resource.id] = resource
        self._by_id = by_id

    @classmethod
    def from_dict(cls, data: dict) -> "ResourceRegistry":
        """Load a roster of the form ``{"lawyers": [...]}``.

        A ``"resources"`` key is accepted as well.
        """
        entries = data.get("lawyers", data.get("resources"))
        if entries is None:
            raise InvalidInputError("Roster has neither a 'lawyers' nor a 'resources' list")
        return cls(Resource.from_dict(entry) for entry in entries)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "ResourceRegistry":
        """Load a roster from a JSON file."""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        registry = cls.from_dict(data)
        logger.debug("Loaded %d resources from %s", len(registry), path)
        return registry

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, resource_id: str) -> bool:
        return resource_id in self._by_id

    def get(self, resource_id: str) -> Resource:
        """Get a resource by id.

        Raises:
            ResourceNotFoundError: If no resource has this id.
        """
        resource = self._by_id.get(resource_id)
        if resource is None:
            raise ResourceNotFoundError(resource_id)
        return resource

    def find(self, resource_id: str) -> Optional[Resource]:
        """Get a resource by id, or None if unknown."""
        return self._by_id.get(resource_id)

    def list_resources(self) -> list[Resource]:
        """All resources, in roster order."""
        return list(self._by_id.values())

    def resolve_owner(self, tag: Optional[str]) -> Optional[Resource]:
        """Resolve an upstream owner tag (id, name or email) to a resource."""
        if not tag:
            return None
        tag = tag.strip()
        for resource in self._by_id.values():
            if resource.matches_tag(tag):
                return resource
            if resource.email and resource.email.lower() == tag.lower():
                return resource
        return None
