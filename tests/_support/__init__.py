"""Test support: fake execution channels for the perspective loader."""

from tests._support.channels import DualEngineChannel, RecordingChannel, match_document

__all__ = ["DualEngineChannel", "RecordingChannel", "match_document"]
