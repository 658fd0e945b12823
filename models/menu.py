from pydantic import BaseModel, Field
from typing import List, Literal, Optional

# why a menu item's restaurant reference is being rewritten
RepairReason = Literal["missing", "self_reference", "string_reference", "owner_reference", "dangling"]

class MenuItemRepair(BaseModel):
    item_id: str
    item_name: Optional[str] = None
    reason: RepairReason
    old_restaurant: Optional[str] = None
    new_restaurant: str

class RepairPlan(BaseModel):
    target_restaurant_id: str
    scanned: int
    repairs: List[MenuItemRepair] = Field(default_factory=list)

class RepairResult(BaseModel):
    planned: int
    applied: int
    skipped: int
