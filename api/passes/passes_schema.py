from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Dict, Any
from datetime import datetime

from utils.time_utils import ensure_utc


class PassDocument(BaseModel):
    """Detached read of a `passes` row, safe to use after the session closes."""

    id: str
    pass_id: Optional[str] = None
    pass_type: Optional[str] = None
    user_name: Optional[str] = None
    name: Optional[str] = None
    amount: Optional[float] = None
    price: Optional[float] = None
    team_snapshot: Optional[Dict[str, Any]] = None
    checked_in: bool = False
    checked_in_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def members(self) -> Optional[List[Dict[str, Any]]]:
        """Group roster, or None for an individual pass"""
        members = (self.team_snapshot or {}).get("members")
        return list(members) if members else None

    @property
    def is_group(self) -> bool:
        return self.members is not None

    @property
    def display_name(self) -> str:
        return self.user_name or self.name or "Access Pass"

    @property
    def amount_paid(self) -> float:
        return self.amount or self.price or 0

    @property
    def checked_in_at_utc(self) -> Optional[datetime]:
        return ensure_utc(self.checked_in_at)
