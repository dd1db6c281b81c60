from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from iacgen.api.deps import get_state
from iacgen.core.errors import PipelineError
from iacgen.core.state import AppState
from iacgen.schemas.generate import GenerateResponse, GenerationRequest

router = APIRouter()

@router.post(
    "/generate",
    response_model=GenerateResponse,
    responses={500: {"content": {"text/plain": {}}, "description": "A pipeline stage failed"}},
)
async def generate_iac(req: GenerationRequest, state: AppState = Depends(get_state)):
    try:
        outcome = await state.orchestrator.run(req)
    except PipelineError as e:
        return PlainTextResponse(str(e), status_code=500)
    return GenerateResponse(message=outcome.message, deploy_script=outcome.deploy_script)
