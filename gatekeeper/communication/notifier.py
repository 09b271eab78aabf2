"""
Operator Notifier

Posts a short room message (HipChat-style form API) after a successful
run. Notification is a side effect only: failures are logged and never
change the outcome of the run.
"""

import logging
from typing import Optional

import requests


MESSAGE_TEMPLATE = "Updated active VPN sessions from {device}"


class RoomNotifier:
    """
    Send success notifications to a chat room endpoint.
    """

    def __init__(
        self,
        endpoint: str,
        room_id: Optional[str] = None,
        sender: str = "Gatekeeper",
        verify_tls: bool = True,
        timeout: float = 10,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize notifier.

        Args:
            endpoint: Notification URL
            room_id: Room to post into
            sender: Display name of the sender
            verify_tls: Verify the endpoint certificate
            timeout: Request timeout in seconds
            session: Optional requests.Session
        """
        self.endpoint = endpoint
        self.room_id = room_id
        self.sender = sender
        self.verify_tls = verify_tls
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger(__name__)

    def build_payload(self, device: str) -> dict:
        payload = {
            'from': self.sender,
            'message_format': 'html',
            'color': 'green',
            'message': MESSAGE_TEMPLATE.format(device=device)
        }
        if self.room_id:
            payload['room_id'] = self.room_id
        return payload

    def notify_success(self, device: str) -> bool:
        """
        Post the success message for a device.

        Args:
            device: Device hostname named in the message

        Returns:
            True if the endpoint answered 2xx
        """
        self.logger.info(f"Posting notification to {self.endpoint}")

        try:
            response = self.session.post(
                self.endpoint,
                data=self.build_payload(device),
                timeout=self.timeout,
                verify=self.verify_tls
            )
        except requests.exceptions.RequestException as e:
            self.logger.warning(f"Could not send notification: {e}")
            return False

        if not response.ok:
            self.logger.warning(
                f"Could not send notification: {response.status_code} - {response.text}"
            )
            return False

        self.logger.debug(f"Notification accepted: {response.status_code}")
        return True
