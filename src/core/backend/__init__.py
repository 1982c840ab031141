from src.core.backend.client import BackendClient, build_filter_params
from src.core.backend.session import get_backend

__all__ = ["BackendClient", "build_filter_params", "get_backend"]
