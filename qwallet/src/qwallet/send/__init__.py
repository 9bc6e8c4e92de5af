"""
Send flow: composing, submitting and reconciling outbound transactions.
"""

from qwallet.send.controller import (
    SEND_ERROR,
    SEND_SUCCESS,
    Composing,
    Idle,
    ReconcilingFailure,
    ReconcilingSuccess,
    SendFlowController,
    SendPhase,
    SendState,
    Submitting,
)
from qwallet.send.notifications import (
    CloseReason,
    Notification,
    NotificationCenter,
    NotificationKind,
)

__all__ = [
    "SEND_ERROR",
    "SEND_SUCCESS",
    "CloseReason",
    "Composing",
    "Idle",
    "Notification",
    "NotificationCenter",
    "NotificationKind",
    "ReconcilingFailure",
    "ReconcilingSuccess",
    "SendFlowController",
    "SendPhase",
    "SendState",
    "Submitting",
]
