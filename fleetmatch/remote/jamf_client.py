"""Jamf Classic API adapter for the fleetmatch ports.

Implements PolicyBackend and MutationBackend over HTTP with ``requests``,
plus the list/detail fetches used for hydration. Token acquisition is the
caller's concern: the client is handed a bearer token.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from xml.sax.saxutils import escape

import requests

from fleetmatch.models import RecordKind

logger = logging.getLogger(__name__)

_ENDPOINTS: Dict[RecordKind, Tuple[str, str]] = {
    # kind: (collection path, XML/JSON root element)
    RecordKind.POLICY: ("policies", "policy"),
    RecordKind.PROFILE: ("osxconfigurationprofiles", "os_x_configuration_profile"),
}

_POLICY_TEMPLATE = """<policy>
    <general>
        <name>Install {app}</name>
        <enabled>true</enabled>
        <frequency>Ongoing</frequency>
        <category>
            <name>{category}</name>
        </category>
    </general>
    <scope>
        <all_computers>true</all_computers>
    </scope>
    <self_service>
        <use_for_self_service>true</use_for_self_service>
        <self_service_display_name>Install {app}</self_service_display_name>
        <install_button_text>Install</install_button_text>
        <force_users_to_view_description>false</force_users_to_view_description>
        <feature_on_main_page>{featured}</feature_on_main_page>
        <self_service_categories>
            <category>
                <name>{category}</name>
                <display_in>{display_in}</display_in>
                <feature_in>{featured}</feature_in>
            </category>
        </self_service_categories>
    </self_service>
    <scripts>
        <script>
            <id>{script_id}</id>
            <priority>After</priority>
            <parameter4>{label}</parameter4>
            <parameter5>DEBUG=0</parameter5>
            <parameter6>NOTIFY=silent</parameter6>
        </script>
    </scripts>
</policy>"""


class JamfAPIError(Exception):
    """Raised when the Jamf API rejects a request or cannot be reached."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


def build_policy_xml(
    app_name: str,
    label: str,
    category_name: str,
    script_id: str,
    feature_on_main_page: bool,
    display_in_category: bool,
) -> str:
    """Render the Classic API body for a self-service install policy."""
    return _POLICY_TEMPLATE.format(
        app=escape(app_name),
        category=escape(category_name),
        featured="true" if feature_on_main_page else "false",
        display_in="true" if display_in_category else "false",
        script_id=escape(str(script_id)),
        label=escape(label),
    )


def build_move_xml(kind: RecordKind, category_name: str) -> str:
    """Render a category change; the Classic API nests it in <general>."""
    root = _ENDPOINTS[kind][1]
    return (
        f"<{root}><general><category><name>{escape(category_name)}</name>"
        f"</category></general></{root}>"
    )


def category_of(kind: RecordKind, detail: Optional[Dict[str, Any]]) -> Optional[str]:
    """Extract the category name from a detail payload, if present."""
    if not detail:
        return None
    record = detail.get(_ENDPOINTS[kind][1]) or {}
    category = (record.get("general") or {}).get("category") or {}
    name = category.get("name")
    if not name or name == "No category assigned":
        return None
    return name


class JamfClassicClient:
    """Thin HTTP client for the Jamf Classic API.

    Attributes:
        base_url: Instance URL without a trailing slash.
        timeout: (connect, read) timeout passed to requests.

    Example:
        >>> client = JamfClassicClient("https://example.jamfcloud.com/", token)
        >>> client.fetch_policies()
        [{'id': 1, 'name': 'Install Zoom'}]
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str],
        timeout: Tuple[float, float] = (5.0, 30.0),
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Jamf instance URL.
            token: Bearer token, or None when not yet authenticated.
            timeout: Request timeout as (connect, read) seconds.
            session: Optional requests session to reuse.

        Raises:
            ValueError: If base_url is empty.
        """
        cleaned = base_url.strip().rstrip("/")
        if not cleaned:
            raise ValueError("base_url must not be empty")
        self.base_url = cleaned
        self.timeout = timeout
        self._token = token
        self._session = session if session is not None else requests.Session()

    # ------------------------------------------------------------------
    # PolicyBackend / MutationBackend
    # ------------------------------------------------------------------

    def create_installomator_policy(
        self,
        app_name: str,
        label: str,
        category_name: str,
        script_id: str,
        feature_on_main_page: bool,
        display_in_category: bool,
    ) -> None:
        body = build_policy_xml(
            app_name, label, category_name, script_id, feature_on_main_page, display_in_category
        )
        self._request("POST", "JSSResource/policies/id/0", body=body)

    def move_record(self, kind: RecordKind, record_id: int, category_name: str) -> None:
        path = _ENDPOINTS[kind][0]
        self._request("PUT", f"JSSResource/{path}/id/{record_id}", body=build_move_xml(kind, category_name))

    def delete_record(self, kind: RecordKind, record_id: int) -> None:
        path = _ENDPOINTS[kind][0]
        self._request("DELETE", f"JSSResource/{path}/id/{record_id}")

    # ------------------------------------------------------------------
    # Fetches
    # ------------------------------------------------------------------

    def fetch_records(self, kind: RecordKind) -> List[Dict[str, Any]]:
        """List id/name summaries for a record kind."""
        path = _ENDPOINTS[kind][0]
        payload = self._request("GET", f"JSSResource/{path}").json()
        key = "policies" if kind is RecordKind.POLICY else "os_x_configuration_profiles"
        return list(payload.get(key, []))

    def fetch_record_detail(self, kind: RecordKind, record_id: int) -> Dict[str, Any]:
        path = _ENDPOINTS[kind][0]
        return self._request("GET", f"JSSResource/{path}/id/{record_id}").json()

    def fetch_policies(self) -> List[Dict[str, Any]]:
        return self.fetch_records(RecordKind.POLICY)

    def fetch_policy_detail(self, policy_id: int) -> Dict[str, Any]:
        return self.fetch_record_detail(RecordKind.POLICY, policy_id)

    def fetch_profiles(self) -> List[Dict[str, Any]]:
        return self.fetch_records(RecordKind.PROFILE)

    def fetch_profile_detail(self, profile_id: int) -> Dict[str, Any]:
        return self.fetch_record_detail(RecordKind.PROFILE, profile_id)

    def fetch_categories(self) -> List[Dict[str, Any]]:
        payload = self._request("GET", "JSSResource/categories").json()
        return list(payload.get("categories", []))

    def fetch_scripts(self) -> List[Dict[str, Any]]:
        payload = self._request("GET", "api/v1/scripts", params={"page-size": "500"}).json()
        return list(payload.get("results", []))

    def find_script_id(self, name_fragment: str = "Installomator") -> Optional[str]:
        """Return the id of the first script whose name contains the fragment."""
        needle = name_fragment.casefold()
        for script in sorted(self.fetch_scripts(), key=lambda s: s.get("name", "")):
            if needle in str(script.get("name", "")).casefold():
                return str(script["id"])
        return None

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        endpoint: str,
        body: Optional[str] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        if not self._token:
            raise JamfAPIError("Not authenticated: no API token provided")

        headers = {"Authorization": f"Bearer {self._token}", "Accept": "application/json"}
        if body is not None:
            headers["Content-Type"] = "application/xml"
            headers["Accept"] = "application/xml"

        url = f"{self.base_url}/{endpoint}"
        try:
            response = self._session.request(
                method,
                url,
                data=body.encode("utf-8") if body is not None else None,
                headers=headers,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise JamfAPIError(f"{method} {endpoint} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.debug("Jamf API error body: %s", response.text)
            raise JamfAPIError(
                f"{method} {endpoint} returned HTTP {response.status_code}",
                status=response.status_code,
            )
        return response
