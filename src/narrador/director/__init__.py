"""Segmentación de escenas."""

from .segmenter import segment_scenes, parse_duration, parse_change_points

__all__ = ["segment_scenes", "parse_duration", "parse_change_points"]
