"""ARQ task registration.

All ARQ task functions are imported here for WorkerSettings.functions.
"""

from problem_collector.workers.tasks.collection import run_collection_job

__all__ = ["run_collection_job"]
