"""
Lifecycle signals.

Signals are sent only after the state-changing transaction has committed,
so receivers never run inside (or roll back) a lifecycle write.
"""

from blinker import Namespace

_signals = Namespace()

#: sent with ``record`` (OccupancyRecord) after a join request is stored
join_requested = _signals.signal("join-requested")

#: sent with ``record`` after a request is approved or rejected
join_request_decided = _signals.signal("join-request-decided")

#: sent with ``payment`` after a payment is confirmed
payment_confirmed = _signals.signal("payment-confirmed")
