"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, date_stamp
from utils.readiness import wait_until_ready, when_ready
