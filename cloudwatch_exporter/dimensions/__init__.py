from .resolver import DimensionResolver, DefaultDimensionResolver
from .cache import CachingDimensionResolver, DimensionCacheEntry
from .tags import (
    ResourceTagMapping,
    ResourceTagScanner,
    extract_resource_id,
    extract_resource_ids,
)

__all__ = [
    # Dimension resolution
    "DimensionResolver",
    "DefaultDimensionResolver",
    "CachingDimensionResolver",
    "DimensionCacheEntry",
    # Tag based selection
    "ResourceTagMapping",
    "ResourceTagScanner",
    "extract_resource_id",
    "extract_resource_ids",
]
