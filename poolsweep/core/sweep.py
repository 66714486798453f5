"""Paginated, fail-fast deletion of every resource a client can list."""
import fnmatch
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional

from poolsweep.core.errors import (
    DeleteResourceError,
    ErrorClass,
    ListResourcesError,
    classify_sweep_error,
)
from poolsweep.core.logging import log_context

MAX_PAGE_SIZE = 50


@dataclass(frozen=True)
class ResourceHandle:
    identifier: str
    display_name: str


class SweepStatus(Enum):
    DONE = 'done'
    SKIPPED = 'skipped'


@dataclass
class SweepResult:
    region: str
    kind: str
    status: SweepStatus = SweepStatus.DONE
    deleted: List[ResourceHandle] = field(default_factory=list)
    excluded: List[ResourceHandle] = field(default_factory=list)
    skipped_reason: Optional[str] = None


def sweep_resources(
    client,
    region: str,
    kind: str,
    page_size: int = MAX_PAGE_SIZE,
    classify: Callable[[Exception], ErrorClass] = classify_sweep_error,
    dry_run: bool = False,
    exclude: Optional[Iterable[str]] = None,
) -> SweepResult:
    """Delete every resource ``client`` lists in ``region``.

    Pages are requested one at a time and deletions are issued strictly in
    listing order. Listing errors that ``classify`` marks as SKIP end the sweep
    with a SKIPPED result; any other listing error raises ListResourcesError
    and the first failed deletion raises DeleteResourceError. Both errors
    carry the partial SweepResult as ``result``. Nothing is retried.

    Args:
        client: object with ``list_resources(max_results, continuation_token)``
            and ``delete_resource(identifier)``.
        region: region the client is scoped to, used for logging and results.
        kind: human readable resource kind, e.g. "Cognito User Pool".
        page_size: requested page size, clamped to 1..50.
        classify: maps a listing error to SKIP or FATAL.
        dry_run: log what would be deleted without deleting it.
        exclude: fnmatch patterns; matching display names are left alone.

    Returns:
        SweepResult describing what was deleted, or why the sweep was skipped.
    """
    page_size = max(1, min(page_size, MAX_PAGE_SIZE))
    patterns = list(exclude or [])
    result = SweepResult(region=region, kind=kind)
    token = None

    with log_context(region=region):
        while True:
            try:
                handles, token = client.list_resources(page_size, token)
            except Exception as e:
                if classify(e) is ErrorClass.SKIP:
                    logging.warning(f"Skipping {kind} sweep for {region}: {e}",
                                    extra={'region': region, 'action': 'skip'})
                    result.status = SweepStatus.SKIPPED
                    result.skipped_reason = str(e)
                    return result
                raise ListResourcesError(kind, region, e, result) from e

            if not handles:
                logging.debug(f"No {kind} to sweep")
                return result

            for handle in handles:
                if any(fnmatch.fnmatch(handle.display_name, p) for p in patterns):
                    logging.info(f"Excluded {kind} {handle.display_name}",
                                 extra={'region': region, 'resource_id': handle.identifier,
                                        'action': 'exclude'})
                    result.excluded.append(handle)
                    continue
                if dry_run:
                    logging.info(f"[Dry-Run] Would delete {kind} {handle.display_name}",
                                 extra={'region': region, 'resource_id': handle.identifier,
                                        'action': 'dry_run'})
                    continue
                logging.info(f"Deleting {kind} {handle.display_name}",
                             extra={'region': region, 'resource_id': handle.identifier,
                                    'action': 'delete'})
                try:
                    client.delete_resource(handle.identifier)
                except Exception as e:
                    raise DeleteResourceError(kind, handle, e, result) from e
                result.deleted.append(handle)

            if token is None:
                return result
