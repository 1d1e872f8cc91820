# academy/schemas/availability.py

from enum import Enum
from pydantic import BaseModel

class SlotState(str, Enum):
    unset = "unset"
    available = "available"
    unavailable = "unavailable"

# день недели → (время → состояние)
Schedule = dict[str, dict[str, SlotState]]

class AvailabilityPayload(BaseModel):
    availability: Schedule = {}
