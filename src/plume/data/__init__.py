"""Data acquisition: data functions, validation, persisted records.

Usage::

    scheduler = site.scheduler()
    await scheduler.fetch()                       # full rebuild
    await scheduler.fetch(languages="fr")         # one language
    await scheduler.fetch(function_names="get_home_data")  # targeted
"""

from plume.data.functions import DataFunctions
from plume.data.scheduler import DataScheduler, FetchReport
from plume.data.store import RecordStore
from plume.data.validate import check_data

__all__ = [
    "DataFunctions",
    "DataScheduler",
    "FetchReport",
    "RecordStore",
    "check_data",
]
