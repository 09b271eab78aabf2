"""
Gatekeeper Communication Module

Downstream publish and operator notification over HTTP.
"""

from .publisher import SessionPublisher
from .notifier import MESSAGE_TEMPLATE, RoomNotifier

__all__ = ['MESSAGE_TEMPLATE', 'RoomNotifier', 'SessionPublisher']
