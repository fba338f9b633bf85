"""
Pulse

Heartbeat (dead-man's switch) monitoring for scheduled jobs.
"""

__version__ = "0.1.0"
