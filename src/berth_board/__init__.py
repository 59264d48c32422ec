"""Berth Board: community posts with ordered image attachments."""
