from fastapi import Request
from iacgen.core.state import AppState


def get_state(request: Request) -> AppState:
    return request.app.state.services
