from urlanalyzer.services.http_service import HttpService
from urlanalyzer.exceptions import FetchError
from unittest.mock import Mock, PropertyMock
import requests


def test_fetch_success():
    mock_http_client = Mock()
    mock_http_client.return_value.status_code = 200
    mock_http_client.return_value.content = b'hello world'
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client)
    response = http.fetch('http://example.com')
    assert response.status_code == 200
    assert response.content == b'hello world'


def test_fetch_wraps_requests_exception():
    mock_http_client = Mock()
    mock_http_client.side_effect = requests.exceptions.Timeout("timed out")
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client)

    try:
        http.fetch('http://example.com')
        assert False, "expected FetchError"
    except FetchError as e:
        assert "http://example.com" in str(e)


def test_fetch_sends_user_agent_and_timeout():
    mock_http_client = Mock()
    mock_http_client.return_value.status_code = 200
    mock_http_client.return_value.content = b'<html>test</html>'
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client, timeout=4)
    http.fetch('http://example.com')
    _, kwargs = mock_http_client.call_args
    assert kwargs['headers'] == {'User-Agent': 'TestAgent'}
    assert kwargs['timeout'] == 4


def test_fetch_bubbles_unexpected_exceptions():
    """Verify that non-requests exceptions while reading the body are NOT swallowed."""
    mock_response = Mock()
    mock_response.status_code = 200
    type(mock_response).content = PropertyMock(side_effect=RuntimeError("Real bug reading body"))
    http = HttpService(user_agent='TestAgent', http_client=Mock(return_value=mock_response))

    try:
        http.fetch('http://example.com')
        assert False, "expected RuntimeError to bubble up"
    except RuntimeError as e:
        assert "Real bug" in str(e)


def test_head_follows_redirects_with_timeout():
    mock_head = Mock()
    mock_head.return_value.status_code = 200
    http = HttpService(user_agent='TestAgent', http_client=Mock(), head_client=mock_head, timeout=3)
    assert http.head('http://example.com/x') == 200
    _, kwargs = mock_head.call_args
    assert kwargs['allow_redirects'] is True
    assert kwargs['timeout'] == 3
    assert kwargs['headers'] == {'User-Agent': 'TestAgent'}


def test_head_wraps_connection_error():
    mock_head = Mock(side_effect=requests.exceptions.ConnectionError("refused"))
    http = HttpService(user_agent='TestAgent', http_client=Mock(), head_client=mock_head)
    try:
        http.head('http://down.example')
        assert False, "expected FetchError"
    except FetchError as e:
        assert e.url == 'http://down.example'
