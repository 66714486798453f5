"""Sweep error types and provider error classification."""
from enum import Enum
from typing import List, Tuple

from botocore.exceptions import ClientError, EndpointConnectionError


class ErrorClass(Enum):
    SKIP = 'skip'
    FATAL = 'fatal'


class SweepError(Exception):
    """Base class for errors raised while sweeping."""


class ListResourcesError(SweepError):
    def __init__(self, kind, region, cause, result=None):
        # SweepResult with whatever was deleted before the failure
        self.result = result
        self.kind = kind
        self.region = region
        self.cause = cause
        super().__init__(f"Error retrieving {kind} in {region}: {cause}")


class DeleteResourceError(SweepError):
    def __init__(self, kind, handle, cause, result=None):
        self.result = result
        self.kind = kind
        self.handle = handle
        self.cause = cause
        super().__init__(f"Error deleting {kind} {handle.display_name}: {cause}")


class ServiceUnavailable(SweepError):
    """The service cannot be used in this region or with these credentials."""


class ResourceStillExists(SweepError):
    def __init__(self, kind, identifier):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} still exists")


# (error code, message fragment); an empty fragment matches any message
SWEEP_SKIP_ERRORS: List[Tuple[str, str]] = [
    ('UnsupportedOperation', ''),
    ('InvalidParameterValue', 'not permitted in this API version for your account'),
    ('InvalidParameterValue', 'Access Denied to API Version'),
    # GovCloud endpoints answer with an empty AccessDeniedException
    ('AccessDeniedException', ''),
    ('BadRequestException', 'not supported'),
    ('InvalidAction', 'is not valid'),
    ('InvalidAction', 'Unavailable Operation'),
]

PRECHECK_SKIP_ERRORS: List[Tuple[str, str]] = [
    ('AccessDeniedException', ''),
    ('UnknownOperationException', ''),
    ('UnsupportedOperation', ''),
    ('InvalidInputException', 'Unknown operation'),
    ('InvalidAction', 'is not valid'),
    ('InvalidAction', 'Unavailable Operation'),
]


def error_code(err) -> str:
    if not isinstance(err, ClientError):
        return ''
    return err.response.get('Error', {}).get('Code', '')


def error_message(err) -> str:
    if not isinstance(err, ClientError):
        return str(err)
    return err.response.get('Error', {}).get('Message', '')


def _matches(err, table) -> bool:
    # A missing regional endpoint means the service is not offered there
    if isinstance(err, EndpointConnectionError):
        return True
    code = error_code(err)
    if not code:
        return False
    message = error_message(err)
    return any(code == c and fragment in message for c, fragment in table)


def classify_sweep_error(err) -> ErrorClass:
    """Decide whether a listing failure should skip the sweep or fail it."""
    return ErrorClass.SKIP if _matches(err, SWEEP_SKIP_ERRORS) else ErrorClass.FATAL


def classify_precheck_error(err) -> ErrorClass:
    return ErrorClass.SKIP if _matches(err, PRECHECK_SKIP_ERRORS) else ErrorClass.FATAL


def is_not_found(err) -> bool:
    return error_code(err) == 'ResourceNotFoundException'
