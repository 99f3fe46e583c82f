"""
Python client for the buildstock API.

ApiClient talks HTTP; ListStore and ListScreen hold the per-screen state a
list view needs (current page, filters, loaded rows).
"""
from .api import ApiClient, ApiError, Page
from .store import ListStore
from .screens import ListScreen, SubmitGuard, SubmissionInProgress

__all__ = [
    'ApiClient', 'ApiError', 'Page',
    'ListStore',
    'ListScreen', 'SubmitGuard', 'SubmissionInProgress',
]
