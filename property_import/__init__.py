"""Property import job client.

The package is structured around the life of one remote import job:
- `submitter.py` creates the job on the remote queue.
- `poller.py` follows the job's status until it finishes.
- `orchestrator.py` runs both as one deduplicated operation, using the
  single-flight registry in `single_flight.py`.
- `models.py` defines the wire schema, `errors.py` the failure taxonomy.
"""

from .config import ImportSettings
from .errors import (
    ConfigurationError,
    ImportJobError,
    JobDomainError,
    JobTimeoutError,
    PollCancelledError,
    PollingTransportError,
    SubmissionError,
)
from .models import ImportJobResult, ImportJobStatus, JobAccepted
from .orchestrator import ImportOrchestrator
from .poller import JobPoller, PollTask
from .single_flight import SingleFlightRegistry
from .submitter import JobSubmitter
from .utils import request_key

__all__ = [
    "ConfigurationError",
    "ImportJobError",
    "ImportJobResult",
    "ImportJobStatus",
    "ImportOrchestrator",
    "ImportSettings",
    "JobAccepted",
    "JobDomainError",
    "JobPoller",
    "JobSubmitter",
    "JobTimeoutError",
    "PollCancelledError",
    "PollTask",
    "PollingTransportError",
    "SingleFlightRegistry",
    "SubmissionError",
    "request_key",
]
