"""
Pubsub Signals.

Similar to EDA signals, these can be used for monitoring, logging,
or other cross-cutting concerns.
"""

from django.db import close_old_connections, reset_queries
from django.dispatch import Signal

# Sent when a consumer starts processing a message
message_started = Signal()

# Sent when a consumer finishes processing a message (success or failure)
message_finished = Signal()

# Sent after a message that failed with a non-retryable error has been deleted.
# Receivers get `message` and `error`.
message_discarded = Signal()

# db connection state managed similarly to the wsgi handler
message_started.connect(reset_queries)
message_started.connect(close_old_connections)
message_finished.connect(close_old_connections)
