import logging

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from poolsweep.core.errors import DeleteResourceError, ListResourcesError
from poolsweep.core.sweep import ResourceHandle, SweepStatus, sweep_resources

A = ResourceHandle('pool-a', 'A')
B = ResourceHandle('pool-b', 'B')
C = ResourceHandle('pool-c', 'C')


class FakeClient:
    """Serves canned pages keyed by continuation token and records every call."""

    def __init__(self, pages, list_error=None, delete_errors=None):
        self.pages = pages
        self.list_error = list_error
        self.delete_errors = delete_errors or {}
        self.calls = []

    def list_resources(self, max_results, continuation_token=None):
        self.calls.append(('list', continuation_token))
        if self.list_error is not None:
            raise self.list_error
        return self.pages[continuation_token]

    def delete_resource(self, identifier):
        self.calls.append(('delete', identifier))
        if identifier in self.delete_errors:
            raise self.delete_errors[identifier]


def client_error(code, message='', operation='ListUserPools'):
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


def test_sweep_two_pages():
    client = FakeClient({None: ([A, B], 't1'), 't1': ([C], None)})

    result = sweep_resources(client, 'us-east-1', 'Cognito User Pool')

    assert client.calls == [
        ('list', None), ('delete', 'pool-a'), ('delete', 'pool-b'),
        ('list', 't1'), ('delete', 'pool-c'),
    ]
    assert result.status is SweepStatus.DONE
    assert result.deleted == [A, B, C]


def test_sweep_stops_at_first_failed_delete():
    err = client_error('InternalErrorException', 'boom', 'DeleteUserPool')
    client = FakeClient({None: ([A, B], None)}, delete_errors={'pool-a': err})

    with pytest.raises(DeleteResourceError) as excinfo:
        sweep_resources(client, 'us-east-1', 'Cognito User Pool')

    assert client.calls == [('list', None), ('delete', 'pool-a')]
    assert excinfo.value.handle == A
    assert excinfo.value.cause is err
    assert excinfo.value.__cause__ is err
    assert 'Error deleting Cognito User Pool A' in str(excinfo.value)


def test_failed_delete_on_first_page_leaves_later_pages_unlisted():
    err = client_error('InternalErrorException', 'boom', 'DeleteUserPool')
    client = FakeClient({None: ([A, B], 't1'), 't1': ([C], None)},
                        delete_errors={'pool-b': err})

    with pytest.raises(DeleteResourceError):
        sweep_resources(client, 'us-east-1', 'Cognito User Pool')

    assert ('list', 't1') not in client.calls
    assert ('delete', 'pool-c') not in client.calls


def test_empty_first_page_deletes_nothing():
    client = FakeClient({None: ([], None)})

    result = sweep_resources(client, 'us-east-1', 'Cognito User Pool')

    assert client.calls == [('list', None)]
    assert result.status is SweepStatus.DONE
    assert result.deleted == []


def test_empty_page_ends_sweep_even_with_token():
    client = FakeClient({None: ([A], 't1'), 't1': ([], 't2')})

    result = sweep_resources(client, 'us-east-1', 'Cognito User Pool')

    assert client.calls == [('list', None), ('delete', 'pool-a'), ('list', 't1')]
    assert result.deleted == [A]


def test_skip_worthy_list_error_is_a_warning(caplog):
    client = FakeClient({}, list_error=client_error('AccessDeniedException'))

    with caplog.at_level(logging.WARNING):
        result = sweep_resources(client, 'us-gov-west-1', 'Cognito User Pool')

    assert result.status is SweepStatus.SKIPPED
    assert client.calls == [('list', None)]
    assert 'Skipping Cognito User Pool sweep for us-gov-west-1' in caplog.text


def test_missing_endpoint_is_skipped():
    err = EndpointConnectionError(endpoint_url='https://cognito-idp.xx-east-1.amazonaws.com/')
    client = FakeClient({}, list_error=err)

    result = sweep_resources(client, 'xx-east-1', 'Cognito User Pool')

    assert result.status is SweepStatus.SKIPPED
    assert result.deleted == []


def test_other_list_error_is_fatal():
    err = client_error('InternalErrorException', 'boom')
    client = FakeClient({None: ([A], 't1')}, list_error=err)

    with pytest.raises(ListResourcesError) as excinfo:
        sweep_resources(client, 'us-east-1', 'Cognito User Pool')

    assert client.calls == [('list', None)]
    assert excinfo.value.cause is err
    assert 'Error retrieving Cognito User Pool in us-east-1' in str(excinfo.value)


def test_list_error_on_later_page_is_fatal():
    client = FakeClient({None: ([A], 't1')})
    original = client.list_resources

    def list_resources(max_results, continuation_token=None):
        if continuation_token == 't1':
            client.calls.append(('list', 't1'))
            raise client_error('InternalErrorException')
        return original(max_results, continuation_token)

    client.list_resources = list_resources

    with pytest.raises(ListResourcesError):
        sweep_resources(client, 'us-east-1', 'Cognito User Pool')

    assert client.calls == [('list', None), ('delete', 'pool-a'), ('list', 't1')]


def test_custom_classifier_is_used():
    from poolsweep.core.errors import ErrorClass

    client = FakeClient({}, list_error=RuntimeError('region disabled'))

    result = sweep_resources(client, 'us-east-1', 'Cognito User Pool',
                             classify=lambda e: ErrorClass.SKIP)

    assert result.status is SweepStatus.SKIPPED
    assert result.skipped_reason == 'region disabled'


@pytest.mark.parametrize('requested, expected', [(1000, 50), (0, 1), (10, 10)])
def test_page_size_is_clamped(requested, expected):
    seen = []

    class Client(FakeClient):
        def list_resources(self, max_results, continuation_token=None):
            seen.append(max_results)
            return super().list_resources(max_results, continuation_token)

    sweep_resources(Client({None: ([], None)}), 'us-east-1', 'x', page_size=requested)

    assert seen == [expected]


def test_dry_run_deletes_nothing():
    client = FakeClient({None: ([A, B], 't1'), 't1': ([C], None)})

    result = sweep_resources(client, 'us-east-1', 'Cognito User Pool', dry_run=True)

    assert client.calls == [('list', None), ('list', 't1')]
    assert result.deleted == []


def test_excluded_names_are_left_alone():
    keep = ResourceHandle('pool-keep', 'shared-prod')
    client = FakeClient({None: ([A, keep, B], None)})

    result = sweep_resources(client, 'us-east-1', 'Cognito User Pool', exclude=['shared-*'])

    assert client.calls == [('list', None), ('delete', 'pool-a'), ('delete', 'pool-b')]
    assert result.excluded == [keep]


def test_dry_run_lines_carry_the_region(caplog):
    client = FakeClient({None: ([A], None)})

    with caplog.at_level(logging.INFO):
        sweep_resources(client, 'eu-west-1', 'Cognito User Pool', dry_run=True)

    record = next(r for r in caplog.records if 'Would delete' in r.getMessage())
    assert record.region == 'eu-west-1'
    assert record.resource_id == 'pool-a'
    assert record.action == 'dry_run'


def test_delete_error_carries_partial_result():
    err = client_error('InternalErrorException', 'boom', 'DeleteUserPool')
    client = FakeClient({None: ([A], 't1'), 't1': ([B, C], None)}, delete_errors={'pool-c': err})

    with pytest.raises(DeleteResourceError) as excinfo:
        sweep_resources(client, 'us-east-1', 'Cognito User Pool')

    assert excinfo.value.result.deleted == [A, B]


def test_list_error_carries_partial_result():
    client = FakeClient({None: ([A], 't1')})
    original = client.list_resources

    def list_resources(max_results, continuation_token=None):
        if continuation_token == 't1':
            raise client_error('InternalErrorException')
        return original(max_results, continuation_token)

    client.list_resources = list_resources

    with pytest.raises(ListResourcesError) as excinfo:
        sweep_resources(client, 'us-east-1', 'Cognito User Pool')

    assert excinfo.value.result.deleted == [A]
