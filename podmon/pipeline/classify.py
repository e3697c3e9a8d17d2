"""Pod snapshot -> error records.

Rules are applied independently; one pod can contribute several records (a failed pod
still gets its container statuses evaluated, and a crash-looping container with many
restarts yields both a HighRestartCount and a CrashLoop record).
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from podmon.core.errors import ConfigurationInvalid
from podmon.core.models import ErrorKind, ErrorRecord, WorkloadSnapshot

WAITING_REASON_KINDS: Dict[str, ErrorKind] = {
    "CrashLoopBackOff": ErrorKind.CRASH_LOOP,
    "ImagePullBackOff": ErrorKind.IMAGE_PULL_FAILURE,
    "ErrImagePull": ErrorKind.IMAGE_PULL_FAILURE,
    "CreateContainerError": ErrorKind.OTHER_CONTAINER_ERROR,
    "InvalidImageName": ErrorKind.OTHER_CONTAINER_ERROR,
    "ImageInspectError": ErrorKind.OTHER_CONTAINER_ERROR,
    "ErrImageNeverPull": ErrorKind.OTHER_CONTAINER_ERROR,
}

FAILED_PHASE_MESSAGE = "Pod is in Failed phase"
HIGH_RESTART_MESSAGE = "Container has restarted multiple times"


def _check_threshold(restart_threshold: int) -> None:
    if isinstance(restart_threshold, bool) or not isinstance(restart_threshold, int) or restart_threshold < 0:
        raise ConfigurationInvalid(f"restart threshold must be a non-negative integer, got {restart_threshold!r}")


def classify_instance(snapshot: WorkloadSnapshot, *, restart_threshold: int) -> List[ErrorRecord]:
    _check_threshold(restart_threshold)
    records: List[ErrorRecord] = []

    if (snapshot.phase or "").lower() == "failed":
        records.append(
            ErrorRecord(
                namespace=snapshot.namespace,
                instance_name=snapshot.name,
                kind=ErrorKind.INSTANCE_FAILED,
                message=FAILED_PHASE_MESSAGE,
            )
        )

    for cs in snapshot.container_statuses:
        if cs.restart_count > restart_threshold:
            records.append(
                ErrorRecord(
                    namespace=snapshot.namespace,
                    instance_name=snapshot.name,
                    container_name=cs.name,
                    kind=ErrorKind.HIGH_RESTART_COUNT,
                    message=HIGH_RESTART_MESSAGE,
                    restart_count=cs.restart_count,
                )
            )

        if cs.waiting is None or not cs.waiting.reason:
            continue
        kind = WAITING_REASON_KINDS.get(cs.waiting.reason)
        if kind is None:
            continue
        records.append(
            ErrorRecord(
                namespace=snapshot.namespace,
                instance_name=snapshot.name,
                container_name=cs.name,
                kind=kind,
                reason=cs.waiting.reason,
                message=cs.waiting.message,
                restart_count=cs.restart_count,
            )
        )

    return records


def classify_snapshots(snapshots: Iterable[WorkloadSnapshot], *, restart_threshold: int) -> List[ErrorRecord]:
    out: List[ErrorRecord] = []
    for snap in snapshots:
        out.extend(classify_instance(snap, restart_threshold=restart_threshold))
    return out


def classify_instance_errors(
    snapshots: Iterable[WorkloadSnapshot], namespace: str, *, restart_threshold: int
) -> List[ErrorRecord]:
    """
    Every error record for one namespace, in snapshot order.

    No minimum count applies here: a namespace with a single record returns it; a
    healthy or unknown namespace returns an empty list.
    """
    return classify_snapshots(
        (s for s in snapshots if s.namespace == namespace), restart_threshold=restart_threshold
    )
