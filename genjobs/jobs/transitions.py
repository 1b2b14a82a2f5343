"""Job state machine.

Every status maps to the statuses it may move to. Terminal statuses map
to nothing and nothing maps back into QUEUED.
"""

from typing import Dict, FrozenSet

from genjobs.jobs.models import JobStatus

TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.QUEUED: frozenset(
        {JobStatus.PROCESSING, JobStatus.CANCELED, JobStatus.FAILED}
    ),
    JobStatus.PROCESSING: frozenset(
        {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELED}
    ),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
    JobStatus.CANCELED: frozenset(),
}

_unmapped = set(JobStatus) - set(TRANSITIONS)
if _unmapped:
    raise RuntimeError(f"Statuses missing from transition table: {sorted(_unmapped)}")


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    return target in TRANSITIONS[current]


def sources_for(target: JobStatus) -> FrozenSet[JobStatus]:
    """Statuses a job must currently be in to move to `target`."""
    sources = frozenset(s for s, targets in TRANSITIONS.items() if target in targets)
    if not sources:
        raise ValueError(f"No transition leads to {target.value}")
    return sources
