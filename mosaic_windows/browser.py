"""mosaic_windows.browser
------------------------

Window backend driving top-level Google Chrome windows through the Chrome
DevTools Protocol (CDP).

Chrome must be running with ``--remote-debugging-port`` (see
``$CHROME_REMOTE_PORT``). Handles are CDP target ids of each window's page.

The tiler is synchronous, so :class:`ChromeWindows` owns a private asyncio
event loop and exposes plain methods; the async Playwright calls run on that
loop one at a time.

Example
-------
>>> windows = ChromeWindows(frame_height=1080)
>>> handle = windows.create_window("Figure 1 (mosaic)")
>>> windows.set_outer_rect(handle, Rect(0, 0, 960, 1055))
"""

from __future__ import annotations

import asyncio
import html
import logging
from typing import Any, Optional
from urllib.parse import quote

from playwright.async_api import (
    async_playwright,
    Browser,
    Error as PlaywrightError,
)

from .backends import CloseCallback
from .constants import (
    CHROME_EXECUTABLE,
    DOCKED_WINDOW_STATES,
    FALLBACK_FRAME_HEIGHT,
    chrome_remote_port,
)
from .geometry import Handle, Rect

_LOG = logging.getLogger(__name__)


def _title_url(title: Optional[str]) -> str:
    """A blank page whose document title is *title*."""
    if not title:
        return "about:blank"
    doc = f"<!doctype html><title>{html.escape(title)}</title>"
    return "data:text/html," + quote(doc)


class ChromeWindows:
    """
    :class:`~mosaic_windows.backends.WindowBackend` over CDP.

    Responsibilities
    ----------------
    " Attach to a Chrome exposing CDP (never launches one).
    " Convert normalized rectangles (bottom-left origin) to CDP screen
      coordinates (top-left origin of the primary monitor).
    " Report minimized windows as invisible and maximized / fullscreen ones as
      docked, so the tiler leaves them alone.
    " Turn ``Target.targetDestroyed`` events into close callbacks (``watch``).
    """

    def __init__(
        self, frame_height: int = FALLBACK_FRAME_HEIGHT, port: Optional[int] = None
    ) -> None:
        self._frame_height = frame_height
        self._port = port if port is not None else chrome_remote_port()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._playwright = None
        self._browser: Browser | None = None
        self._cdp = None
        self._callbacks: dict[Handle, CloseCallback] = {}
        self._destroyed: asyncio.Queue[str] | None = None

    # ---------------- Sync plumbing ---------------- #

    def _run(self, coro):
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
        return self._loop.run_until_complete(coro)

    def __enter__(self) -> "ChromeWindows":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Detach from Chrome (windows stay open) and drop the event loop."""
        if self._loop is None or self._loop.is_closed():
            return
        self._run(self._disconnect())
        self._loop.close()

    # ---------------- Connection ---------------- #

    async def _get_websocket_endpoint(self) -> str | None:
        """Fetch the WebSocket debugger URL from Chrome's /json/version endpoint."""
        import aiohttp

        url = f"http://127.0.0.1:{self._port}/json/version"
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=2)
                ) as resp:
                    if resp.status == 200:
                        data = await resp.json()
                        return data.get("webSocketDebuggerUrl")
        except Exception as exc:
            _LOG.debug("CDP endpoint lookup on port %d failed: %s", self._port, exc)
        return None

    async def _session(self):
        """Return a browser-level CDP session, connecting on first use."""
        if self._cdp is not None:
            return self._cdp

        ws_endpoint = await self._get_websocket_endpoint()
        if not ws_endpoint:
            raise RuntimeError(
                f"Unable to reach Chrome remote debugging on port {self._port}.\n"
                "Start Chrome with that flag, e.g.\n"
                f"  {CHROME_EXECUTABLE} --remote-debugging-port={self._port}"
            )
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.connect_over_cdp(
                ws_endpoint
            )
            self._cdp = await self._browser.new_browser_cdp_session()
        except PlaywrightError as exc:
            await self._disconnect()
            raise RuntimeError(f"Failed to attach to Chrome over CDP: {exc}") from exc
        return self._cdp

    async def _disconnect(self) -> None:
        if self._browser:
            await self._browser.close()
        if self._playwright:
            await self._playwright.stop()
        self._browser = None
        self._playwright = None
        self._cdp = None

    # ---------------- Async helpers ---------------- #

    async def _window_for(self, handle: Handle) -> dict[str, Any] | None:
        """``{"windowId": ..., "bounds": {...}}`` for *handle*, None when gone."""
        cdp = await self._session()
        try:
            return await cdp.send("Browser.getWindowForTarget", {"targetId": handle})
        except PlaywrightError as exc:
            _LOG.debug("No window for target %s: %s", handle, exc)
            return None

    async def _create(self, title: Optional[str]) -> str:
        cdp = await self._session()
        res = await cdp.send(
            "Target.createTarget", {"url": _title_url(title), "newWindow": True}
        )
        return res["targetId"]

    async def _set_bounds(self, handle: Handle, rect: Rect) -> None:
        window = await self._window_for(handle)
        if window is None:
            _LOG.warning("Cannot position window %s: target not found", handle)
            return
        cdp = await self._session()
        await cdp.send(
            "Browser.setWindowBounds",
            {
                "windowId": window["windowId"],
                "bounds": {
                    "left": rect.x,
                    "top": self._frame_height - rect.top,
                    "width": rect.width,
                    "height": rect.height,
                    "windowState": "normal",
                },
            },
        )

    async def _window_state(self, handle: Handle) -> str | None:
        window = await self._window_for(handle)
        if window is None:
            return None
        return window.get("bounds", {}).get("windowState", "normal")

    async def _send_quietly(self, method: str, params: dict) -> None:
        cdp = await self._session()
        try:
            await cdp.send(method, params)
        except PlaywrightError as exc:
            _LOG.debug("%s failed for %s: %s", method, params, exc)

    async def _subscribe(self) -> None:
        cdp = await self._session()
        self._destroyed = asyncio.Queue()
        queue = self._destroyed
        cdp.on(
            "Target.targetDestroyed",
            lambda params: queue.put_nowait(params.get("targetId")),
        )
        await cdp.send("Target.setDiscoverTargets", {"discover": True})

    # ---------------- WindowBackend ---------------- #

    def create_window(self, title: Optional[str] = None) -> Handle:
        return self._run(self._create(title))

    def set_outer_rect(self, handle: Handle, rect: Rect) -> None:
        self._run(self._set_bounds(handle, rect))

    def is_visible(self, handle: Handle) -> bool:
        state = self._run(self._window_state(handle))
        return state is not None and state != "minimized"

    def is_docked(self, handle: Handle) -> bool:
        return self._run(self._window_state(handle)) in DOCKED_WINDOW_STATES

    def focus(self, handle: Handle) -> None:
        self._run(self._send_quietly("Target.activateTarget", {"targetId": handle}))

    def destroy(self, handle: Handle) -> None:
        self._callbacks.pop(handle, None)
        self._run(self._send_quietly("Target.closeTarget", {"targetId": handle}))

    def on_close_requested(self, handle: Handle, callback: CloseCallback) -> None:
        self._callbacks[handle] = callback

    # ---------------- Event loop ---------------- #

    def watch(self, max_events: Optional[int] = None) -> None:
        """
        Block and dispatch close callbacks as Chrome windows disappear.

        Chrome offers no veto on closing, so callbacks run after the window
        is already gone. Callbacks run outside the CDP event loop, so they may
        call back into this backend.
        """
        self._run(self._subscribe())
        seen = 0
        while max_events is None or seen < max_events:
            target_id = self._run(self._destroyed.get())
            seen += 1
            callback = self._callbacks.pop(target_id, None)
            if callback is None:
                continue
            _LOG.info("Window %s closed", target_id)
            callback(target_id, closed=True)
