from typing import Any, Dict, Iterable, Mapping, Optional

from relay.exceptions import NoMappingsConfigured
from relay.schemas.dispatch import MappingSnapshot


def resolve_mappings(
    flattened: Mapping[str, Any],
    mappings: Iterable[MappingSnapshot],
    destination_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the destination-shaped record for one destination.

    A mapped source that is missing from the payload still produces its
    target key, set to None.
    """
    mappings = list(mappings)
    if not mappings:
        raise NoMappingsConfigured(destination_id)

    return {m.target: flattened.get(m.source) for m in mappings}
