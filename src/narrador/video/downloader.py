"""
Descargador de videos de YouTube.
Usa yt-dlp para bajar la pista de video (y opcionalmente el audio) en mp4/m4a.
"""

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class VideoDownloader:
    """Descarga videos para alimentar el pipeline."""

    def __init__(self, downloads_dir: str = "./downloads"):
        """
        Args:
            downloads_dir: Directorio donde guardar las descargas
        """
        self.downloads_dir = Path(downloads_dir)
        self.downloads_dir.mkdir(parents=True, exist_ok=True)

    def _ydl_opts(self, fmt: str, suffix: str) -> dict:
        return {
            "quiet": True,
            "no_warnings": True,
            "format": fmt,
            "outtmpl": str(self.downloads_dir / f"%(title)s_{suffix}.%(ext)s"),
        }

    def _download(self, url: str, fmt: str, suffix: str) -> str:
        import yt_dlp

        with yt_dlp.YoutubeDL(self._ydl_opts(fmt, suffix)) as ydl:
            info = ydl.extract_info(url, download=True)
            return ydl.prepare_filename(info)

    def download(self, url: str, with_audio: bool = False) -> tuple[str, Optional[str]]:
        """
        Descarga el video de la URL.

        Args:
            url: URL del video
            with_audio: Si también descargar la pista de audio por separado

        Returns:
            (ruta del video, ruta del audio o None)
        """
        logger.info(f"Descargando video: {url}")
        video_path = self._download(url, "bestvideo[ext=mp4]", "video")

        audio_path = None
        if with_audio:
            logger.info("Descargando audio...")
            audio_path = self._download(url, "bestaudio[ext=m4a]", "audio")

        logger.info(f"Descarga completa: {video_path}")
        return video_path, audio_path
