# src/spanhive/contracts/enums.py
"""Enumerations shared by configuration and the delivery subsystem."""

from enum import StrEnum


class BackpressureMode(StrEnum):
    """How to handle backpressure when the transmission queue is full.

    Values:
        BLOCK: Block the caller until the queue has space, up to block_timeout
        DROP: Drop the event immediately and count it (caller unaffected)
    """

    BLOCK = "block"
    DROP = "drop"


class SubmissionMode(StrEnum):
    """How an event was handed to the Transmission.

    Values:
        SAMPLED: Transmission applies random sampling using the event's sample rate
        PRESAMPLED: Caller already decided retention, transmit as-is
    """

    SAMPLED = "sampled"
    PRESAMPLED = "presampled"
