"""HTTP client for the reminder service API."""

import json
import os
import urllib.error
import urllib.parse
import urllib.request
from typing import Optional

# Default API endpoint
DEFAULT_API_URL = "http://127.0.0.1:8421"
API_TIMEOUT = 2  # seconds


class ReminderClient:
    """Client for the reminder service API."""

    def __init__(self, api_url: Optional[str] = None):
        """
        Initialize client.

        Args:
            api_url: Base URL for API (default: http://127.0.0.1:8421)
        """
        self.api_url = api_url or os.environ.get("REMIND_API_URL", DEFAULT_API_URL)

    def _request(self, method: str, path: str, data: Optional[dict] = None, timeout: Optional[int] = None) -> tuple[Optional[dict], bool, bool]:
        """
        Make an HTTP request.

        Args:
            method: HTTP method (GET, POST, DELETE)
            path: API path
            data: Optional JSON data
            timeout: Optional timeout in seconds (default: API_TIMEOUT)

        Returns:
            Tuple of (response_data, success, unavailable)
            - success=True, unavailable=False: Request succeeded
            - success=False, unavailable=True: Connection error (service unavailable)
            - success=False, unavailable=False: API error; response_data holds the error body if any
        """
        url = f"{self.api_url}{path}"
        request_timeout = timeout if timeout is not None else API_TIMEOUT

        try:
            headers = {"Content-Type": "application/json"}
            body = json.dumps(data).encode() if data else None

            req = urllib.request.Request(url, data=body, headers=headers, method=method)
            with urllib.request.urlopen(req, timeout=request_timeout) as response:
                return json.loads(response.read().decode()), True, False

        except urllib.error.HTTPError as e:
            # API responded but with error status
            try:
                return json.loads(e.read().decode()), False, False
            except ValueError:
                return None, False, False
        except urllib.error.URLError:
            # Connection refused, timeout, etc. - service unavailable
            return None, False, True
        except Exception:
            # Other errors - treat as unavailable
            return None, False, True

    def create_reminder(self, message: str, delay_ms: int) -> tuple[Optional[dict], bool, bool]:
        """Create a reminder due delay_ms from now."""
        return self._request("POST", "/reminders", {"message": message, "delay_ms": delay_ms})

    def list_reminders(self, status: Optional[str] = None) -> tuple[Optional[list], bool]:
        """
        List reminders, optionally filtered to "active" or "expired".

        Returns:
            Tuple of (reminders, unavailable); reminders is None on any failure
        """
        path = "/reminders"
        if status:
            path += "?" + urllib.parse.urlencode({"status": status})
        data, success, unavailable = self._request("GET", path)
        if success and data is not None:
            return data.get("reminders", []), False
        return None, unavailable

    def delete_reminder(self, reminder_id: str) -> tuple[Optional[bool], bool]:
        """
        Delete a reminder.

        Returns:
            Tuple of (deleted, unavailable); deleted is None on an API error
        """
        data, success, unavailable = self._request(
            "DELETE", f"/reminders/{urllib.parse.quote(reminder_id, safe='')}"
        )
        if not success:
            return None, unavailable
        return bool(data and data.get("deleted")), False

    def focus(self) -> tuple[Optional[list], bool]:
        """
        Ask the service to run a catch-up tick.

        Returns:
            Tuple of (triggered_ids, unavailable); triggered_ids is None on any failure
        """
        data, success, unavailable = self._request("POST", "/focus")
        if success and data is not None:
            return data.get("triggered", []), False
        return None, unavailable
