"""Background workers for the reservation engine."""

from .base import BaseWorker
from .hold_reaper_worker import HoldReaperWorker
from .manager import WorkerManager, worker_manager

__all__ = ["BaseWorker", "HoldReaperWorker", "WorkerManager", "worker_manager"]
