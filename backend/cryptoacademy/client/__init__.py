from cryptoacademy.client.api import AcademyClient, ApiError, ProgressRecord, UnauthorizedError
from cryptoacademy.client.page import PageScope
from cryptoacademy.client.progress_store import ProgressRefreshFailed, ProgressStore
from cryptoacademy.client.read_detector import ReadCompletionDetector, scroll_percent

__all__ = [
    "AcademyClient",
    "ApiError",
    "PageScope",
    "ProgressRecord",
    "ProgressRefreshFailed",
    "ProgressStore",
    "ReadCompletionDetector",
    "UnauthorizedError",
    "scroll_percent",
]
