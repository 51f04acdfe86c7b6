from pydantic import BaseModel
from typing import Optional, List
import datetime as dt

from kinbook.constants import EventType


# ---------------------------------------------------------
# EVENTS
# ---------------------------------------------------------
class EventCreate(BaseModel):
    title: str
    date: dt.date
    description: Optional[str] = None
    type: EventType = EventType.LIFE
    people_ids: List[str] = []


class EventOut(BaseModel):
    id: str
    title: str
    date: dt.date
    description: Optional[str] = None
    type: EventType
    people_ids: List[str] = []

    created_by: str
    created_at: dt.datetime

    model_config = {
        "from_attributes": True
    }


# ---------------------------------------------------------
# MEMORIES
# ---------------------------------------------------------
class MemoryCreate(BaseModel):
    title: str
    date: dt.date
    description: Optional[str] = None
    image_urls: List[str] = []
    people_ids: List[str] = []


class MemoryOut(BaseModel):
    id: str
    title: str
    date: dt.date
    description: Optional[str] = None
    image_urls: List[str] = []
    people_ids: List[str] = []

    created_by: str
    created_at: dt.datetime

    model_config = {
        "from_attributes": True
    }
