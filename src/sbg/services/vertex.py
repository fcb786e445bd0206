"""Shared Vertex AI generateContent transport."""

import logging
from typing import Any, Dict, Iterator, Optional

import google.auth
import google.auth.exceptions
import google.auth.transport.requests
import requests

from ..config import config
from ..errors import RemoteError, RemoteErrorKind, remote_error_for_status

logger = logging.getLogger(__name__)

# Candidate finish reasons that mean the output was withheld by policy
BLOCKED_FINISH_REASONS = {
    "SAFETY",
    "BLOCKLIST",
    "PROHIBITED_CONTENT",
    "SPII",
    "IMAGE_SAFETY",
    "IMAGE_PROHIBITED_CONTENT",
}


class VertexClient:
    """Base client for Vertex AI publisher models via REST.

    Subclasses build a request body and pull inline payloads out of the
    response; transport, auth and error classification live here.
    """

    DEFAULT_LOCATION = "us-central1"
    SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]

    def __init__(
        self,
        model: str,
        project_id: Optional[str] = None,
        location: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the client.

        Args:
            model: Publisher model name.
            project_id: Google Cloud project ID.
            location: GCP region for Vertex AI.
            timeout: HTTP timeout in seconds.
            session: Optional requests session (shared connection pool).
        """
        self._project_id = project_id or config.google_cloud_project
        self._location = location or config.google_cloud_location or self.DEFAULT_LOCATION
        self._model = model
        self._timeout = timeout or config.request_timeout
        self._session = session or requests.Session()
        self._credentials = None

        if not self._project_id:
            raise ValueError("GOOGLE_CLOUD_PROJECT not set")

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def model(self) -> str:
        return self._model

    @property
    def endpoint(self) -> str:
        return (
            f"https://{self._location}-aiplatform.googleapis.com/v1/"
            f"projects/{self._project_id}/locations/{self._location}/"
            f"publishers/google/models/{self._model}:generateContent"
        )

    def _token(self) -> str:
        """Return a fresh OAuth access token from application default credentials."""
        if self._credentials is None:
            self._credentials, _ = google.auth.default(scopes=self.SCOPES)
        if not self._credentials.valid:
            self._credentials.refresh(google.auth.transport.requests.Request())
        return self._credentials.token

    def generate_content(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """POST a generateContent request and return the decoded response.

        Raises:
            RemoteError: Classified by status code, transport or auth failure,
                or safety block.
        """
        try:
            token = self._token()
        except google.auth.exceptions.TransportError as e:
            raise RemoteError(
                f"Could not refresh Google credentials: {e}", kind=RemoteErrorKind.TRANSIENT
            ) from e
        except google.auth.exceptions.GoogleAuthError as e:
            raise RemoteError(f"Google authentication failed: {e}") from e

        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        try:
            response = self._session.post(
                self.endpoint, json=body, headers=headers, timeout=self._timeout
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise RemoteError(
                f"{self._model} request failed: {e}", kind=RemoteErrorKind.TRANSIENT
            ) from e

        if response.status_code != 200:
            error_msg = f"{self._model} returned {response.status_code}: {response.text[:500]}"
            logger.debug(error_msg)
            raise remote_error_for_status(response.status_code, error_msg)

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteError(f"{self._model} returned a non-JSON body") from e

        self._raise_if_blocked(data)
        return data

    def _raise_if_blocked(self, data: Dict[str, Any]) -> None:
        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise RemoteError(
                f"Prompt blocked by {self._model}: {block_reason}",
                kind=RemoteErrorKind.BLOCKED,
            )

        for candidate in data.get("candidates") or []:
            reason = candidate.get("finishReason")
            if reason in BLOCKED_FINISH_REASONS:
                raise RemoteError(
                    f"Output blocked by {self._model}: {reason}",
                    kind=RemoteErrorKind.BLOCKED,
                )

    @staticmethod
    def inline_parts(data: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
        """Yield the inlineData blobs of the first candidate, in order."""
        candidates = data.get("candidates") or []
        if not candidates:
            return
        content = candidates[0].get("content") or {}
        for part in content.get("parts") or []:
            blob = part.get("inlineData") or part.get("inline_data")
            if blob and blob.get("data"):
                yield blob
