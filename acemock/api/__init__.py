"""
API layer for AceMock

Contains FastAPI routers for:
- Interview sessions and stage events
- Code execution
- Report generation
- WebSocket real-time communication
"""

from acemock.api.router import api_router

__all__ = ["api_router"]
