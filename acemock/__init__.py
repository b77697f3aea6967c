"""
AceMock - AI-Powered Mock Interview Platform

Walks a candidate through a fixed sequence of interview stages, evaluates
each stage with a generative model and runs submitted code on a remote
execution service.
"""

__version__ = "0.1.0"
__author__ = "AceMock Team"
