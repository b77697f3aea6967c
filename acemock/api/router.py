"""
Main API router for AceMock

Aggregates all API routes and provides the main application router.
"""

from fastapi import APIRouter

from acemock.api.endpoints import coding, interview, metadata, report

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    interview.router,
    prefix="/interview",
    tags=["Interview"]
)

api_router.include_router(
    coding.router,
    prefix="/coding",
    tags=["Coding"]
)

api_router.include_router(
    report.router,
    prefix="/report",
    tags=["Report"]
)

api_router.include_router(
    metadata.router,
    prefix="/metadata",
    tags=["Metadata"]
)
