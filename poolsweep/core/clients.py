"""Region-scoped boto3 clients exposing the sweeper's list/delete surface."""
import logging
from typing import List, Optional, Tuple

import boto3

from poolsweep.core.sweep import ResourceHandle

SERVICE_NAME = 'cognito-idp'


class CognitoUserPoolClient:
    """Thin adapter over a ``cognito-idp`` boto3 client."""

    def __init__(self, idp, region: Optional[str] = None):
        self.idp = idp
        self.region = region or idp.meta.region_name

    def list_resources(self, max_results: int,
                       continuation_token: Optional[str] = None) -> Tuple[List[ResourceHandle], Optional[str]]:
        params = {'MaxResults': max_results}
        if continuation_token:
            params['NextToken'] = continuation_token
        resp = self.idp.list_user_pools(**params)
        handles = [ResourceHandle(p['Id'], p.get('Name', p['Id']))
                   for p in resp.get('UserPools', [])]
        return handles, resp.get('NextToken') or None

    def delete_resource(self, identifier: str) -> None:
        self.idp.delete_user_pool(UserPoolId=identifier)

    def describe(self, identifier: str) -> dict:
        return self.idp.describe_user_pool(UserPoolId=identifier)['UserPool']


class ClientFactory:
    def __init__(self, session: Optional[boto3.session.Session] = None):
        self.session = session or boto3.session.Session()

    def get_client(self, region: str) -> CognitoUserPoolClient:
        # Construction errors (unknown region, missing credentials config) propagate as-is
        if not region:
            raise ValueError("region must be a non-empty string")
        idp = self.session.client(SERVICE_NAME, region_name=region)
        return CognitoUserPoolClient(idp, region)

    def available_regions(self) -> List[str]:
        regions = self.session.get_available_regions(SERVICE_NAME)
        logging.info('Retrieved regions: %s', regions)
        return regions
