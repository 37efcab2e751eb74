"""
Unit tests for raw text fetching.
"""
from unittest.mock import Mock, patch

import pytest
import requests

from core.exceptions import FetchError
from core.fetch import fetch_text, is_url


def test_is_url():
    assert is_url("https://bank.example/export.csv")
    assert is_url("HTTP://bank.example/export.csv")
    assert not is_url("/tmp/export.csv")


def test_fetch_text_reads_file(tmp_path, sample_csv):
    path = tmp_path / "export.csv"
    path.write_text(sample_csv, encoding="utf-8")
    assert fetch_text(str(path)) == sample_csv


def test_fetch_text_strips_utf8_bom(tmp_path):
    path = tmp_path / "bom.csv"
    path.write_bytes(b'\xef\xbb\xbf"A"\n"1"')
    assert fetch_text(str(path)) == '"A"\n"1"'


def test_fetch_text_missing_file(tmp_path):
    with pytest.raises(FetchError) as exc_info:
        fetch_text(str(tmp_path / "missing.csv"))
    assert exc_info.value.details["source"].endswith("missing.csv")


def test_fetch_text_from_url(sample_csv):
    response = Mock()
    response.text = sample_csv
    response.raise_for_status.return_value = None

    with patch("core.fetch.requests.get", return_value=response) as mock_get:
        assert fetch_text("https://bank.example/export.csv", timeout=5) == sample_csv
    mock_get.assert_called_once_with("https://bank.example/export.csv", timeout=5)


def test_fetch_text_url_failure_is_wrapped():
    with patch("core.fetch.requests.get", side_effect=requests.ConnectionError("down")):
        with pytest.raises(FetchError) as exc_info:
            fetch_text("https://bank.example/export.csv")
    assert "down" in exc_info.value.details["error"]
