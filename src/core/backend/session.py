from collections.abc import AsyncGenerator

from src.core.backend.client import BackendClient
from src.core.config import settings


def create_backend_client() -> BackendClient:
    return BackendClient(
        base_url=settings.supabase_url,
        api_key=settings.supabase_key,
        timeout=settings.backend_timeout_seconds,
    )


async def get_backend() -> AsyncGenerator[BackendClient, None]:
    """Dependency for getting a backend client scoped to the request."""
    async with create_backend_client() as backend:
        yield backend
