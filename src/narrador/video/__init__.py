"""Módulo de video: frames y descargas."""

from .frames import FrameScheduler, FrameExtractor, FfmpegFrameExtractor
from .downloader import VideoDownloader

__all__ = ["FrameScheduler", "FrameExtractor", "FfmpegFrameExtractor", "VideoDownloader"]
