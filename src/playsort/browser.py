"""Browser attachment/launch for a playlist page via Playwright."""

from __future__ import annotations

import importlib.util
from contextlib import contextmanager
from typing import Any, Iterator

from playsort.constants import PLAYLIST_URL_MARKER


def playwright_available() -> bool:
    return importlib.util.find_spec("playwright") is not None


def is_playlist_url(url: str) -> bool:
    return PLAYLIST_URL_MARKER in str(url or "")


def cdp_endpoint(*, cdp_url: str | None = None, cdp_port: int | None = None) -> str | None:
    if cdp_url:
        return cdp_url.rstrip("/")
    if cdp_port:
        return f"http://127.0.0.1:{int(cdp_port)}"
    return None


@contextmanager
def open_playlist_page(
    url: str,
    *,
    cdp_url: str | None = None,
    cdp_port: int | None = None,
    user_data_dir: str | None = None,
    headless: bool = False,
    timeout_ms: int = 60000,
) -> Iterator[Any]:
    """Yield a Playwright page showing ``url``.

    Attaching over CDP reuses the logged-in browser and leaves it running on exit;
    otherwise a persistent Chromium context is launched and closed afterwards.
    """
    from playwright.sync_api import sync_playwright

    endpoint = cdp_endpoint(cdp_url=cdp_url, cdp_port=cdp_port)
    with sync_playwright() as p:
        if endpoint:
            browser = p.chromium.connect_over_cdp(endpoint)
            context = browser.contexts[0] if browser.contexts else browser.new_context()
            page = _find_page(context, url) or (context.pages[0] if context.pages else context.new_page())
            page.set_default_timeout(timeout_ms)
            if page.url != url:
                page.goto(url, wait_until="domcontentloaded")
            page.bring_to_front()
            yield page
            return

        context = _launch_context(p, user_data_dir=user_data_dir, headless=headless)
        try:
            page = context.pages[0] if context.pages else context.new_page()
            page.set_default_timeout(timeout_ms)
            page.goto(url, wait_until="domcontentloaded")
            yield page
        finally:
            try:
                context.close()
            except Exception:
                pass


def _find_page(context: Any, url: str) -> Any | None:
    for page in list(getattr(context, "pages", []) or []):
        if str(getattr(page, "url", "") or "") == url:
            return page
    return None


def _launch_context(playwright_obj: Any, *, user_data_dir: str | None, headless: bool) -> Any:
    kwargs: dict[str, Any] = {
        "headless": headless,
        "args": ["--window-size=1280,900"],
        "viewport": {"width": 1280, "height": 860},
    }
    profile = user_data_dir or ""
    try:
        return playwright_obj.chromium.launch_persistent_context(profile, channel="chrome", **kwargs)
    except Exception:
        return playwright_obj.chromium.launch_persistent_context(profile, **kwargs)
