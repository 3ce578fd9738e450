import logging
import re
from typing import Tuple
from urllib.parse import urlparse

import requests

from .errors import ClubError, ValidationFailed

logger = logging.getLogger(__name__)

DRIVE_FILE_RE = re.compile(r'drive\.google\.com/file/d/([a-zA-Z0-9_-]+)')
DRIVE_OPEN_RE = re.compile(r'drive\.google\.com/open\?(?:.*&)?id=([a-zA-Z0-9_-]+)')

USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36'
CACHE_CONTROL = 'public, max-age=86400'


class UpstreamError(ClubError):
    status_code = 502


def direct_url(url: str) -> str:
    """Rewrite a Google Drive share link to its direct-view form; other URLs pass through."""
    for pattern in (DRIVE_FILE_RE, DRIVE_OPEN_RE):
        match = pattern.search(url)
        if match:
            return f"https://drive.google.com/uc?export=view&id={match.group(1)}"
    return url


def fetch_image(url: str, timeout: int = 10) -> Tuple[bytes, str]:
    """Fetch an image for re-serving. Returns (content, content_type)."""
    if not url:
        raise ValidationFailed('Image URL is required')
    if urlparse(url).scheme not in ('http', 'https'):
        raise ValidationFailed('Only http and https image URLs can be proxied')

    target = direct_url(url)
    try:
        resp = requests.get(target, headers={'User-Agent': USER_AGENT}, timeout=timeout)
        resp.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.warning(f"Image proxy fetch failed for {target}: {e}")
        raise UpstreamError('Failed to load image')

    return resp.content, resp.headers.get('Content-Type', 'image/jpeg')
