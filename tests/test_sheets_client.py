# =============================================================================
# tests/test_sheets_client.py - Google Sheets Client Tests
# =============================================================================

from unittest.mock import MagicMock

import httpx
import pytest

from lib.sheets_client import MOCK_PERSONAS, SHEETS_API_BASE, GoogleSheetsClient


def _response(status: int, payload: dict) -> httpx.Response:
    return httpx.Response(
        status,
        json=payload,
        request=httpx.Request("GET", SHEETS_API_BASE),
    )


@pytest.fixture
def http():
    return MagicMock()


@pytest.fixture
def client(http):
    return GoogleSheetsClient(
        api_key="sheets-key", sheet_id="sheet-123", sheet_name="Persona Tab", http_client=http,
    )


class TestExampleDataFallback:
    """Test the built-in example data."""

    def test_no_key_serves_examples(self, http):
        client = GoogleSheetsClient(api_key=None, sheet_id="s", sheet_name="t", http_client=http)

        personas = client.get_persona_data()

        assert [p.audience_name for p in personas] == ["Informed Professionals"]
        http.get.assert_not_called()

    def test_http_error_serves_examples(self, client, http):
        http.get.return_value = _response(403, {"error": {"message": "forbidden"}})

        assert client.get_persona_data() == list(MOCK_PERSONAS)

    def test_transport_error_serves_examples(self, client, http):
        http.get.side_effect = httpx.ConnectTimeout("timed out")

        assert client.get_persona_data() == list(MOCK_PERSONAS)

    def test_empty_sheet_serves_examples(self, client, http):
        http.get.return_value = _response(200, {"range": "Persona Tab!A1:L1"})

        assert client.get_persona_data() == list(MOCK_PERSONAS)


class TestSheetRead:
    """Test reading real sheet values."""

    def test_parses_rows(self, client, http, sample_sheet_rows):
        http.get.return_value = _response(200, {"values": sample_sheet_rows})

        personas = client.get_persona_data()

        assert [p.audience_name for p in personas] == ["Weekend Cyclists 60% Male 55% iOS"]

    def test_requests_columns_a_to_l_with_key(self, client, http, sample_sheet_rows):
        http.get.return_value = _response(200, {"values": sample_sheet_rows})

        client.get_persona_data()

        args, kwargs = http.get.call_args
        assert args[0] == f"{SHEETS_API_BASE}/sheet-123/values/Persona%20Tab!A:L"
        assert kwargs["params"]["key"] == "sheets-key"

    def test_name_filter_is_case_insensitive_substring(self, client, http, sample_sheet_rows):
        http.get.return_value = _response(200, {"values": sample_sheet_rows})

        assert len(client.get_persona_data("CYCLISTS")) == 1
        assert client.get_persona_data("runners") == []


class TestConnectionCheck:
    def test_unconfigured(self):
        result = GoogleSheetsClient(api_key="", sheet_id="s", sheet_name="t").test_connection()

        assert result["success"] is False

    def test_reports_sheet_titles(self, client, http):
        http.get.return_value = _response(200, {
            "properties": {"title": "Audiences"},
            "sheets": [{"properties": {"title": "Persona Tab"}}],
        })

        result = client.test_connection()

        assert result["success"] is True
        assert result["data"] == {"title": "Audiences", "sheets": ["Persona Tab"]}

    def test_failure_is_reported(self, client, http):
        http.get.return_value = _response(404, {})

        result = client.test_connection()

        assert result["success"] is False
        assert result["message"].startswith("Failed to connect to Google Sheets")
