"""Unit tests for JamfClassicClient with a mocked requests session."""

from unittest.mock import MagicMock

import pytest
import requests

from fleetmatch.models import RecordKind
from fleetmatch.remote import (
    JamfAPIError,
    JamfClassicClient,
    build_move_xml,
    build_policy_xml,
    category_of,
)


def make_response(status_code: int = 201, payload=None, text: str = "") -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload if payload is not None else {}
    return response


@pytest.fixture
def http_session() -> MagicMock:
    session = MagicMock(spec=requests.Session)
    session.request.return_value = make_response()
    return session


@pytest.fixture
def client(http_session) -> JamfClassicClient:
    return JamfClassicClient("https://example.jamfcloud.com/", "token-123", session=http_session)


@pytest.mark.unit
class TestPayloads:
    """Tests for the XML bodies sent to the Classic API."""

    def test_policy_xml_carries_label_and_script_parameters(self):
        body = build_policy_xml("Zoom", "zoom", "Apps", "12", False, True)

        assert "<name>Install Zoom</name>" in body
        assert "<frequency>Ongoing</frequency>" in body
        assert "<all_computers>true</all_computers>" in body
        assert "<id>12</id>" in body
        assert "<priority>After</priority>" in body
        assert "<parameter4>zoom</parameter4>" in body
        assert "<parameter5>DEBUG=0</parameter5>" in body
        assert "<parameter6>NOTIFY=silent</parameter6>" in body
        assert "<feature_on_main_page>false</feature_on_main_page>" in body
        assert "<display_in>true</display_in>" in body

    def test_policy_xml_escapes_values(self):
        body = build_policy_xml("AT&T <Tool>", "att", "R&D", "1", True, False)
        assert "Install AT&amp;T &lt;Tool&gt;" in body
        assert "<name>R&amp;D</name>" in body
        assert "<feature_in>true</feature_in>" in body

    def test_move_xml_nests_category_in_general(self):
        body = build_move_xml(RecordKind.PROFILE, "Utilities")
        assert body == (
            "<os_x_configuration_profile><general><category><name>Utilities</name>"
            "</category></general></os_x_configuration_profile>"
        )

    def test_category_of_detail(self):
        detail = {"policy": {"general": {"category": {"id": 3, "name": "Apps"}}}}
        assert category_of(RecordKind.POLICY, detail) == "Apps"

    @pytest.mark.parametrize("detail", [
        None,
        {},
        {"policy": {"general": {"category": {"id": -1, "name": "No category assigned"}}}},
    ])
    def test_category_of_missing(self, detail):
        assert category_of(RecordKind.POLICY, detail) is None


@pytest.mark.unit
class TestRequests:
    """Tests for endpoints, headers and error mapping."""

    def test_trailing_slash_trimmed(self, client):
        assert client.base_url == "https://example.jamfcloud.com"

    def test_empty_base_url_rejected(self):
        with pytest.raises(ValueError):
            JamfClassicClient(" / ", "token")

    def test_create_policy_posts_xml(self, client, http_session):
        client.create_installomator_policy("Zoom", "zoom", "Apps", "12", False, True)

        args, kwargs = http_session.request.call_args
        assert args == ("POST", "https://example.jamfcloud.com/JSSResource/policies/id/0")
        assert kwargs["headers"]["Authorization"] == "Bearer token-123"
        assert kwargs["headers"]["Content-Type"] == "application/xml"
        assert b"<parameter4>zoom</parameter4>" in kwargs["data"]

    def test_move_record_puts_to_kind_endpoint(self, client, http_session):
        client.move_record(RecordKind.PROFILE, 44, "Utilities")

        args, kwargs = http_session.request.call_args
        assert args == (
            "PUT",
            "https://example.jamfcloud.com/JSSResource/osxconfigurationprofiles/id/44",
        )

    def test_delete_record(self, client, http_session):
        http_session.request.return_value = make_response(200)
        client.delete_record(RecordKind.POLICY, 7)

        args, kwargs = http_session.request.call_args
        assert args == ("DELETE", "https://example.jamfcloud.com/JSSResource/policies/id/7")
        assert kwargs["data"] is None

    def test_fetch_policies_reads_json(self, client, http_session, sample_policies):
        http_session.request.return_value = make_response(200, {"policies": sample_policies})

        assert client.fetch_policies() == sample_policies
        kwargs = http_session.request.call_args.kwargs
        assert kwargs["headers"]["Accept"] == "application/json"

    def test_fetch_profiles(self, client, http_session):
        profiles = [{"id": 5, "name": "Wi-Fi"}]
        http_session.request.return_value = make_response(
            200, {"os_x_configuration_profiles": profiles}
        )
        assert client.fetch_profiles() == profiles

    def test_find_script_id_by_name(self, client, http_session):
        http_session.request.return_value = make_response(
            200,
            {"results": [{"id": "3", "name": "Cleanup"}, {"id": "9", "name": "Installomator 10.5"}]},
        )
        assert client.find_script_id() == "9"

    def test_non_2xx_raises_with_status(self, client, http_session):
        http_session.request.return_value = make_response(409, text="<html>Conflict</html>")

        with pytest.raises(JamfAPIError) as exc_info:
            client.create_installomator_policy("Zoom", "zoom", "Apps", "12", False, True)

        assert exc_info.value.status == 409
        assert "409" in str(exc_info.value)

    def test_transport_error_wrapped(self, client, http_session):
        http_session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(JamfAPIError) as exc_info:
            client.fetch_categories()

        assert exc_info.value.status is None

    def test_missing_token_fails_before_request(self, http_session):
        client = JamfClassicClient("https://example.jamfcloud.com", None, session=http_session)

        with pytest.raises(JamfAPIError):
            client.delete_record(RecordKind.POLICY, 1)

        http_session.request.assert_not_called()
