"""Tests for the shared HTTP helpers and file: URL handling."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from common.http_client import (
    CONNECTION_ERROR_EXIT,
    file_url_to_path,
    is_file_url,
    open_remote,
    parse_http_date,
    path_to_file_url,
    probe_last_modified,
    safe_get,
    safe_head,
)
from conftest import write_file
from constants import Constants


def _response(ok=True, status_code=200, headers=None):
    res = MagicMock()
    res.ok = ok
    res.status_code = status_code
    res.reason = "Not Found" if status_code == 404 else "OK"
    res.headers = headers or {}
    return res


class TestHttpDates:
    """Test Last-Modified parsing."""

    def test_rfc1123(self):
        assert parse_http_date("Wed, 21 Oct 2015 07:28:00 GMT") == 1_445_412_480_000

    @pytest.mark.parametrize("value", [None, "", "not a date"])
    def test_unusable_values(self, value):
        assert parse_http_date(value) == 0


class TestFileUrls:
    """Test conversion between paths and file: URLs."""

    def test_round_trip(self, tmp_path):
        path = tmp_path / "dir with space" / "a.jar"
        url = path_to_file_url(str(path))
        assert is_file_url(url)
        assert "%20" in url
        assert file_url_to_path(url) == str(path)

    def test_http_is_not_file(self):
        assert not is_file_url("http://example.com/a.jar")

    def test_probe_file(self, site):
        url = write_file(site / "a.jar", b"a", 1_600_000_000_000)
        assert probe_last_modified(url) == 1_600_000_000_000
        assert probe_last_modified((site / "missing.jar").as_uri()) == 0

    def test_open_file(self, site):
        url = write_file(site / "a.jar", b"abc", 1_600_000_000_000)
        with open_remote(url) as stream:
            assert stream.content_length == 3
            assert stream.last_modified == 1_600_000_000_000
            assert stream.read() == b"abc"


class TestRequests:
    """Test request wrappers."""

    def test_user_agent_is_sent(self):
        with patch("common.http_client.requests.request", return_value=_response()) as mock_request:
            safe_get("http://example.com/a", context="test", headers={"Accept": "*/*"})
        kwargs = mock_request.call_args.kwargs
        assert kwargs["headers"] == {"User-Agent": Constants.USER_AGENT, "Accept": "*/*"}
        assert kwargs["timeout"] == Constants.REQUEST_TIMEOUT

    def test_head_follows_redirects(self):
        with patch("common.http_client.requests.request", return_value=_response()) as mock_request:
            safe_head("http://example.com/a", context="test")
        assert mock_request.call_args.args[0] == "HEAD"
        assert mock_request.call_args.kwargs["allow_redirects"] is True

    def test_fatal_connection_error_exits(self):
        with patch("common.http_client.requests.request", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(SystemExit) as exc:
                safe_get("http://example.com/a", context="test")
        assert exc.value.code == CONNECTION_ERROR_EXIT

    def test_non_fatal_error_propagates(self):
        with patch("common.http_client.requests.request", side_effect=requests.Timeout("slow")):
            with pytest.raises(requests.Timeout):
                safe_get("http://example.com/a", context="test", fatal=False)


class TestRemote:
    """Test probing and opening http URLs."""

    def test_probe_reads_last_modified(self):
        res = _response(headers={"Last-Modified": "Wed, 21 Oct 2015 07:28:00 GMT"})
        with patch("common.http_client.safe_head", return_value=res):
            assert probe_last_modified("http://example.com/a.jar") == 1_445_412_480_000
        res.close.assert_called_once()

    def test_probe_non_2xx_is_unknown(self):
        with patch("common.http_client.safe_head", return_value=_response(ok=False, status_code=404)):
            assert probe_last_modified("http://example.com/a.jar") == 0

    def test_open_non_2xx_raises(self):
        res = _response(ok=False, status_code=404)
        with patch("common.http_client.safe_get", return_value=res):
            with pytest.raises(requests.HTTPError, match="404"):
                open_remote("http://example.com/a.jar")
        res.close.assert_called_once()

    def test_open_streams_body(self):
        res = _response(
            headers={
                "Content-Length": "6",
                "Content-Type": "application/x-java-jnlp-file",
                "Last-Modified": "Wed, 21 Oct 2015 07:28:00 GMT",
            }
        )
        res.raw.read.return_value = b"remote"
        with patch("common.http_client.safe_get", return_value=res) as mock_get:
            with open_remote("http://example.com/a.jnlp", context="descriptor") as stream:
                assert stream.read(1024) == b"remote"
                assert stream.content_length == 6
                assert stream.content_type == "application/x-java-jnlp-file"
                assert stream.last_modified == 1_445_412_480_000
        assert mock_get.call_args.kwargs["stream"] is True
        res.raw.read.assert_called_once_with(1024, decode_content=True)
        res.close.assert_called_once()
