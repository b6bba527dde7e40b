"""
Saved simulation API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool

from crowdsense.app_layer.dependencies import get_engine
from crowdsense.app_layer.schemas import SavedListResponse, SavedRunResponse, StateResponse
from crowdsense.simulation_layer.engine import SimulationEngine

router = APIRouter()


@router.get("", response_model=SavedListResponse)
async def list_saved(engine: SimulationEngine = Depends(get_engine)):
    return SavedListResponse(runs=engine.list_saved_simulations())


@router.post("", response_model=SavedRunResponse, status_code=201)
async def save_current(engine: SimulationEngine = Depends(get_engine)):
    """Store the current movements, tasks and results."""
    run_id = await run_in_threadpool(engine.save_simulation)
    return SavedRunResponse(run_id=run_id)


@router.post("/{run_id}/load", response_model=StateResponse)
async def load_saved(run_id: str, engine: SimulationEngine = Depends(get_engine)):
    await run_in_threadpool(engine.load_simulation, run_id)
    return StateResponse(state=engine.state.value, is_running=engine.is_running)


@router.delete("/{run_id}", status_code=204)
async def delete_saved(run_id: str, engine: SimulationEngine = Depends(get_engine)):
    if not engine.delete_simulation(run_id):
        raise HTTPException(status_code=404, detail=f"Saved simulation not found: {run_id}")
