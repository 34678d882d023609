from urllib.parse import urlsplit

from app.core.config import settings


def _origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}".lower()


def resolve_redirect(url: str, base_url: str = "", default_path: str = "") -> str:
    """
    Decide where to send the browser after sign-in.

    Relative paths are joined to ``base_url``; absolute URLs on the same
    origin pass through untouched; anything else lands on ``default_path``.
    """
    base_url = (base_url or settings.FRONTEND_URL).rstrip("/")
    default_path = default_path or settings.DEFAULT_LOGIN_REDIRECT

    # "//evil.example" is scheme-relative, not a path
    if url.startswith("/") and not url.startswith("//"):
        return f"{base_url}{url}"

    parts = urlsplit(url)
    if parts.scheme in ("http", "https") and parts.netloc:
        if _origin(url) == _origin(base_url):
            return url

    return f"{base_url}{default_path}"
