import logging
from typing import Iterable

from botocore.exceptions import ClientError

from poolsweep.core.errors import (
    ErrorClass,
    ResourceStillExists,
    ServiceUnavailable,
    classify_precheck_error,
    is_not_found,
)
from poolsweep.core.sweep import SweepResult, sweep_resources
from poolsweep.resources.base import ResourceSweeper

KIND = 'Cognito User Pool'


class CognitoUserPoolSweeper(ResourceSweeper):
    name = 'aws_cognito_user_pool'

    def sweep(self, region: str) -> SweepResult:
        client = self.factory.get_client(region)
        return sweep_resources(
            client,
            region,
            KIND,
            page_size=self.config.page_size,
            dry_run=self.config.dry_run,
            exclude=self.config.exclude_patterns,
        )


def precheck(client) -> None:
    """Fail with ServiceUnavailable if user pools can't be used with this client."""
    try:
        client.list_resources(1)
    except Exception as e:
        if classify_precheck_error(e) is ErrorClass.SKIP:
            raise ServiceUnavailable(f"{KIND}s unavailable in {client.region}: {e}") from e
        raise


def check_exists(client, pool_id: str) -> dict:
    """Describe a pool an acceptance test just created; errors propagate.

    Not reachable from the CLI. Test suites that provision pools call it
    directly after apply.
    """
    if not pool_id:
        raise ValueError(f"No {KIND} ID set")
    return client.describe(pool_id)


def check_destroyed(client, pool_ids: Iterable[str]) -> None:
    """Raise ResourceStillExists for the first pool that can still be described.

    Used after destroy by acceptance tests and by ``poolsweep --verify-destroyed``.
    """
    for pool_id in pool_ids:
        try:
            client.describe(pool_id)
        except ClientError as e:
            if is_not_found(e):
                logging.debug(f"{KIND} {pool_id} is gone")
                continue
            raise
        raise ResourceStillExists(KIND, pool_id)
