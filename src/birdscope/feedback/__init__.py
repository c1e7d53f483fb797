"""User feedback."""

from birdscope.feedback.client import FeedbackClient, FeedbackRecord, FeedbackType

__all__ = ["FeedbackClient", "FeedbackRecord", "FeedbackType"]
