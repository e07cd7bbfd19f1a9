"""Engine services: event notification and background reconciliation."""

from .notifications import LoggingNotificationSink, NotificationSink, RecordingNotificationSink

__all__ = ["LoggingNotificationSink", "NotificationSink", "RecordingNotificationSink"]
