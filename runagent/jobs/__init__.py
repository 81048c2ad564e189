from .hub import NotificationHub, Subscription
from .registry import Job, JobRegistry, JobStatus
from .runner import JobRunner

__all__ = [
    "Job",
    "JobRegistry",
    "JobRunner",
    "JobStatus",
    "NotificationHub",
    "Subscription",
]
