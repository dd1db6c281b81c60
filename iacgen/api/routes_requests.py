from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from iacgen.api.deps import get_state
from iacgen.core.state import AppState
from iacgen.schemas.generate import RequestRecordResponse

router = APIRouter(prefix="/requests")

@router.get("/{external_id}", response_model=RequestRecordResponse)
async def get_latest_request(external_id: str, state: AppState = Depends(get_state)):
    if state.store is None:
        raise HTTPException(status_code=404, detail="Request not found")
    record = await run_in_threadpool(state.store.find_latest_by_external_id, external_id)
    if not record:
        raise HTTPException(status_code=404, detail="Request not found")
    return RequestRecordResponse.model_validate(record)
