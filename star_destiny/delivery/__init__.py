"""Delivery of submissions to the collection sinks."""

from star_destiny.delivery.pipeline import SubmissionPipeline, format_timestamp
from star_destiny.delivery.sinks import HttpSink, Sink, is_sink_configured

__all__ = [
    "HttpSink",
    "Sink",
    "SubmissionPipeline",
    "format_timestamp",
    "is_sink_configured",
]
