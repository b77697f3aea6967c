"""
API endpoint modules for AceMock
"""

from acemock.api.endpoints import coding, interview, metadata, report

__all__ = ["interview", "coding", "report", "metadata"]
