"""Import job library: submit background imports and follow them to completion.

Public API:
    - JobTracker: submit + poll import jobs until a terminal state
    - JobSubmissionError: submission rejected before a job exists
    - ImportHistory: most-recent-first log of import outcomes with subscriptions
    - ImportHistoryEntry, HistoryOutcome, HistorySource: history record types
"""

from tcg_console.lib.jobs.history import HistoryOutcome, HistorySource, ImportHistory, ImportHistoryEntry
from tcg_console.lib.jobs.tracker import JobSubmissionError, JobTracker

__all__ = [
    "HistoryOutcome",
    "HistorySource",
    "ImportHistory",
    "ImportHistoryEntry",
    "JobSubmissionError",
    "JobTracker",
]
