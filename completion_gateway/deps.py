from fastapi import Request

from .services import CompletionService


def get_completion_service(request: Request) -> CompletionService:
    """
    FastAPI dependency returning the CompletionService built in the app
    lifespan.

    Tests override this dependency (or app.state) to inject fakes.
    """
    return request.app.state.completion_service
