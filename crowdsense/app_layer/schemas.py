"""
Pydantic models for API request/response.
"""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Union


class ParametersSchema(BaseModel):
    days: int = Field(default=3, gt=0)
    number_of_users: int = Field(default=2000, gt=0)
    locomotion_type: Union[int, str] = Field(default=1, description="1|walk, 2|bike, 3|drive")
    number_of_tasks: int = Field(default=30, gt=0)
    execution_range: int = Field(default=100, gt=0, description="meters")
    task_duration: int = Field(default=60, gt=0, description="minutes")
    timeslot_duration: int = Field(default=60, gt=0, description="minutes")
    platform_type: Union[int, str] = Field(default=1, description="1|MCS, 2|FOG-MCS, 3|MEC-MCS")


class MovementEventSchema(BaseModel):
    user_id: int
    latitude: float
    longitude: float
    timestamp: float
    day: int
    hour: int
    minute: int
    second: int


class TaskSchema(BaseModel):
    task_id: int
    latitude: float
    longitude: float
    timestamp: float
    duration: int
    distance: int
    timeslots: int


class ResultSchema(BaseModel):
    task_id: int
    candidates: int


class ResultDetailSchema(ResultSchema):
    candidate_user_ids: List[int]


class SummarySchema(BaseModel):
    task_count: int
    average_candidates: float
    max_candidates: int
    min_candidates: int
    coverage: Dict[str, int]


class StateResponse(BaseModel):
    state: str
    is_running: bool
    error: Optional[str] = None


class RunResponse(BaseModel):
    state: str
    movement_count: int
    task_count: int
    summary: SummarySchema


class SavedRunResponse(BaseModel):
    run_id: str


class SavedListResponse(BaseModel):
    runs: List[str]
