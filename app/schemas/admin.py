# app/schemas/admin.py
from pydantic import BaseModel, Field, field_validator
from typing import Literal


class TaskInfo(BaseModel):
    task_name: str
    description: str


class TaskRunRequest(BaseModel):
    task_name: Literal["expire_points", "all"]


class AdminAdjustPointsRequest(BaseModel):
    points: int
    comment: str = Field(..., min_length=1, max_length=500)  # Например, "Бонус за участие в выставке"

    @field_validator("points")
    def points_not_zero(cls, v):
        if v == 0:
            raise ValueError("points must not be zero")
        return v


class AdminAdjustPointsResponse(BaseModel):
    status: str = "ok"
    new_balance: int
    tier: str
