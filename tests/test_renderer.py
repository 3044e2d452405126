"""Tests for the HTTP renderer."""

from unittest.mock import Mock

import pytest
import requests

from inkwell_pkg.exceptions import RenderFetchError
from inkwell_pkg.renderer import HttpRenderer


def make_response(status_code=200, text='<html></html>'):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.content = text.encode('utf-8')
    if status_code >= 400:
        error = requests.exceptions.HTTPError(f"{status_code} Error")
        error.response = response
        response.raise_for_status.side_effect = error
    return response


class TestHttpRenderer:
    """Test cases for HttpRenderer."""

    def test_fetches_relative_url(self, mock_session):
        mock_session.get.return_value = make_response(text='<p>ok</p>')
        renderer = HttpRenderer('http://localhost:5000/', timeout=10, session=mock_session)

        assert renderer.render('/blog/post') == '<p>ok</p>'
        mock_session.get.assert_called_once_with('http://localhost:5000/blog/post', timeout=10)

    def test_http_error_carries_status(self, mock_session):
        mock_session.get.return_value = make_response(status_code=404)
        renderer = HttpRenderer('http://localhost:5000', session=mock_session)

        with pytest.raises(RenderFetchError) as excinfo:
            renderer.render('/missing')
        assert excinfo.value.status_code == 404
        assert excinfo.value.url == '/missing'

    def test_timeout(self, mock_session):
        mock_session.get.side_effect = requests.exceptions.Timeout("too slow")
        renderer = HttpRenderer('http://localhost:5000', session=mock_session)

        with pytest.raises(RenderFetchError, match="Timed out"):
            renderer.render('/slow')

    def test_connection_error(self, mock_session):
        mock_session.get.side_effect = requests.exceptions.ConnectionError("refused")
        renderer = HttpRenderer('http://localhost:5000', session=mock_session)

        with pytest.raises(RenderFetchError) as excinfo:
            renderer.render('/')
        assert excinfo.value.status_code is None

    def test_context_manager_closes_session(self, mock_session):
        with HttpRenderer('http://localhost:5000', session=mock_session):
            pass
        mock_session.close.assert_called_once_with()
