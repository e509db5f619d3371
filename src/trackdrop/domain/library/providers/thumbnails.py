"""Best-effort cover art download."""

from pathlib import Path
from typing import Optional

import httpx
from loguru import logger

THUMBNAIL_FILENAME = "thumb.jpg"


async def download_thumbnail(
    http: httpx.AsyncClient, url: Optional[str], dest_dir: Path
) -> Optional[Path]:
    """Save the image at ``url`` as ``dest_dir/thumb.jpg``.

    Returns:
        Path of the saved image, or None if there was no URL or the fetch failed
    """
    if not url:
        return None
    try:
        res = await http.get(url)
        res.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(f"Thumbnail download failed for {url}: {e}")
        return None

    dest_dir.mkdir(parents=True, exist_ok=True)
    thumb_path = dest_dir / THUMBNAIL_FILENAME
    try:
        thumb_path.write_bytes(res.content)
    except OSError as e:
        logger.warning(f"Could not write thumbnail {thumb_path}: {e}")
        return None
    return thumb_path
