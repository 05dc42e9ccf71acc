"""
Alert Queue Service

Presents alerts one at a time: requests are queued in arrival order, the
alert on screen is streamed to subscribers via Server-Sent Events (SSE), and
the next alert is admitted only after the current one has been dismissed.
"""

__version__ = "1.0.0"
__author__ = "Alert Queue Team"
