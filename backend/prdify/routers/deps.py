from fastapi import Request

from prdify.services.llm_provider import StructuredCompletionProvider


def get_llm_provider(request: Request) -> StructuredCompletionProvider:
    """Completion provider created by the application lifespan"""
    return request.app.state.llm_provider
