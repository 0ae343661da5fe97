# wbgt_pipeline/parser/__init__.py
from .time_normalizer import normalize, normalize_datetime, parse_date
from .csv_frame import parse, read_value
from .forecast_transcoder import transcode

__all__ = [
    "normalize",
    "normalize_datetime",
    "parse_date",
    "parse",
    "read_value",
    "transcode",
]
