import json

import pytest
from mysqllite import responses
from mysqllite.responses import Response, ResponseSignal


def test_success_body():
    response = responses.success({'id': 1})

    assert response.status_code == 200
    assert response.body == {'message': 'OK', 'data': {'id': 1}}
    assert json.loads(response.to_json()) == {'message': 'OK', 'data': {'id': 1}}


def test_no_content_has_empty_body():
    response = responses.no_content()

    assert response.status_code == 204
    assert response.body is None
    assert response.to_json() == ''


@pytest.mark.parametrize(('factory', 'status', 'message'), [
    (responses.server_error, 500, 'Server Error'),
    (responses.client_error, 400, 'Client Error'),
    (responses.unauthorized, 401, 'Unauthorized'),
    (responses.access_error, 403, 'You do not have access to perform this operation'),
    (responses.conflict, 409, 'An existing record is conflicting with this.'),
])
def test_named_defaults(factory, status, message):
    response = factory()

    assert response.status_code == status
    assert response.message == message
    assert response.data == []


def test_general_serializes_non_json_types():
    import datetime
    response = responses.general(418, 'teapot', {'at': datetime.date(2024, 1, 2)})

    assert json.loads(response.to_json())['data'] == {'at': '2024-01-02'}


def test_response_signal_carries_response():
    response = Response(409, 'conflict')

    with pytest.raises(ResponseSignal) as excinfo:
        raise ResponseSignal(response)

    assert excinfo.value.response is response
    assert '409' in str(excinfo.value)
