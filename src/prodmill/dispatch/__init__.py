"""Remote session dispatch and governance update publishing."""

from .client import RemoteDispatchClient
from .governance import (
    GovernanceUpdatePublisher,
    LocalAgentInvocation,
    LocalProcessPublisher,
    PublishResult,
    RemoteDispatchPublisher,
    build_publisher,
)
from .models import DispatchResult, SessionRequest, TaskContext

__all__ = [
    "RemoteDispatchClient",
    "GovernanceUpdatePublisher",
    "LocalAgentInvocation",
    "LocalProcessPublisher",
    "PublishResult",
    "RemoteDispatchPublisher",
    "build_publisher",
    "DispatchResult",
    "SessionRequest",
    "TaskContext",
]
