"""
Session Publisher

PUTs the current SessionMap to the downstream consumer (for example a
security-group synchronizer) as a JSON object of
username -> attribute mapping.
"""

import json
from typing import Optional
import logging

import requests

from gatekeeper.__version__ import __version__
from gatekeeper.exceptions import PublishError
from gatekeeper.sessions.models import SessionMap


class SessionPublisher:
    """
    HTTP client for the downstream publish endpoint.
    """

    def __init__(self, endpoint: str, timeout: float = 30, session: Optional[requests.Session] = None):
        """
        Initialize publisher.

        Args:
            endpoint: Full URL receiving the PUT
            timeout: Request timeout in seconds
            session: Optional requests.Session (for connection reuse or tests)
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

        self.session = session or requests.Session()
        # The consumer reads the raw body; it has always been sent as text/plain
        self.session.headers.update({
            'Content-Type': 'text/plain',
            'User-Agent': f'Gatekeeper/{__version__}'
        })

    @staticmethod
    def serialize(sessions: SessionMap) -> str:
        """Encode the session map as the downstream JSON document"""
        return json.dumps(sessions)

    def publish(self, sessions: SessionMap) -> str:
        """
        PUT the session map to the endpoint.

        Args:
            sessions: SessionMap to publish

        Returns:
            Response body, for the operator

        Raises:
            PublishError: Timeout, connection failure or non-2xx status
        """
        body = self.serialize(sessions)
        self.logger.debug(f"HTTP PUT {self.endpoint} ({len(sessions)} sessions)")

        try:
            response = self.session.put(self.endpoint, data=body, timeout=self.timeout)
            response.raise_for_status()

        except requests.exceptions.Timeout as e:
            raise PublishError(
                f"PUT {self.endpoint} timed out after {self.timeout}s"
            ) from e

        except requests.exceptions.HTTPError as e:
            raise PublishError(
                f"PUT {self.endpoint} failed: {e.response.status_code} - {e.response.text}",
                status_code=e.response.status_code
            ) from e

        except requests.exceptions.RequestException as e:
            raise PublishError(f"PUT {self.endpoint} failed: {e}") from e

        self.logger.info(f"Published {len(sessions)} sessions to {self.endpoint}")
        return response.text

    def close(self):
        """Close the HTTP session"""
        self.session.close()
