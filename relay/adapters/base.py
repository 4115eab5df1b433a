from abc import ABC, abstractmethod
from typing import Any, Dict

from relay.schemas.dispatch import DestinationSnapshot


class DestinationAdapter(ABC):
    """Pushes one mapped record into one kind of destination.

    ``write`` performs exactly one external write and raises a
    ``DeliveryError`` subclass on failure. Retrying is the dispatcher's job.
    """

    @abstractmethod
    async def write(self, destination: DestinationSnapshot, record: Dict[str, Any]) -> None:
        ...
