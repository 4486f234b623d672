"""Span recording: field mapping, routing, sampling and submission."""

from spanhive.recorder.factory import create_span_recorder
from spanhive.recorder.fields import RESERVED_FIELDS, map_span, tag_field_name
from spanhive.recorder.recorder import SpanRecorder
from spanhive.recorder.routing import apply_route, dataset_by_tag
from spanhive.recorder.sampling import keep_all_sampler, resolve_sample, trace_id_sampler

__all__ = [
    "RESERVED_FIELDS",
    "SpanRecorder",
    "apply_route",
    "create_span_recorder",
    "dataset_by_tag",
    "keep_all_sampler",
    "map_span",
    "resolve_sample",
    "tag_field_name",
    "trace_id_sampler",
]
