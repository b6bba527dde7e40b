"""
Simulation API endpoints.
"""

from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool

from crowdsense.app_layer.dependencies import get_engine
from crowdsense.app_layer.schemas import (
    MovementEventSchema,
    ParametersSchema,
    ResultDetailSchema,
    ResultSchema,
    RunResponse,
    StateResponse,
    SummarySchema,
    TaskSchema,
)
from crowdsense.simulation_layer.engine import SimulationEngine
from crowdsense.simulation_layer.models import SimulationParameters

router = APIRouter()


@router.get("/parameters", response_model=ParametersSchema)
async def get_parameters(engine: SimulationEngine = Depends(get_engine)):
    return engine.get_parameters().to_dict()


@router.put("/parameters", response_model=ParametersSchema)
async def set_parameters(
    request: ParametersSchema, engine: SimulationEngine = Depends(get_engine)
):
    """Replace the session parameters."""
    engine.set_parameters(SimulationParameters(**request.model_dump()))
    return engine.get_parameters().to_dict()


@router.post("/run", response_model=RunResponse)
async def run_simulation(engine: SimulationEngine = Depends(get_engine)):
    """Run movement generation, task generation and candidate matching."""
    await run_in_threadpool(engine.run_simulation)
    return RunResponse(
        state=engine.state.value,
        movement_count=len(engine.get_user_movements()),
        task_count=len(engine.get_tasks()),
        summary=SummarySchema(**asdict(engine.summary())),
    )


@router.get("/state", response_model=StateResponse)
async def get_state(engine: SimulationEngine = Depends(get_engine)):
    return StateResponse(
        state=engine.state.value,
        is_running=engine.is_running,
        error=str(engine.last_error) if engine.last_error else None,
    )


@router.get("/movements", response_model=List[MovementEventSchema])
async def get_movements(
    user_id: Optional[int] = None, engine: SimulationEngine = Depends(get_engine)
):
    movements = engine.get_user_movements()
    if user_id is not None:
        movements = [m for m in movements if m.user_id == user_id]
    return [asdict(m) for m in movements]


@router.get("/tasks", response_model=List[TaskSchema])
async def get_tasks(engine: SimulationEngine = Depends(get_engine)):
    return [asdict(t) for t in engine.get_tasks()]


@router.get("/results", response_model=List[ResultSchema])
async def get_results(engine: SimulationEngine = Depends(get_engine)):
    return [asdict(r) for r in engine.get_results()]


@router.get("/results/{task_id}", response_model=ResultDetailSchema)
async def get_result(task_id: int, engine: SimulationEngine = Depends(get_engine)):
    """Result of one task with the ids of its candidate users."""
    result = next((r for r in engine.get_results() if r.task_id == task_id), None)
    if result is None:
        raise HTTPException(status_code=404, detail=f"No result for task {task_id}")
    return ResultDetailSchema(
        task_id=result.task_id,
        candidates=result.candidates,
        candidate_user_ids=engine.candidate_user_ids(task_id),
    )


@router.get("/summary", response_model=SummarySchema)
async def get_summary(engine: SimulationEngine = Depends(get_engine)):
    return SummarySchema(**asdict(engine.summary()))
