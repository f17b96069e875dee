"""
app/schemas package marker.
"""

from app.schemas.dashboard import (
    ChatRequest,
    ChatResponse,
    DashboardResponse,
    ForecastStateResponse,
)

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "DashboardResponse",
    "ForecastStateResponse",
]
