"""PyQt6 WebEngine surface backend.

Each surface is a top-level :class:`QWebEngineView` window. Qt widgets may
only be touched from the GUI thread, so :meth:`QtSurfaceHost.run` keeps the
Qt event loop on the calling (main) thread and runs the authorization
coroutine on a worker thread with its own asyncio loop. Every surface
operation is posted to the GUI thread through :class:`_Dispatcher` and
awaited as a :class:`concurrent.futures.Future`.

Requires the ``qt`` extra::

    pip install "mutauth[qt]"
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
import threading
from concurrent.futures import Future
from typing import Any, Callable, Coroutine, Optional, TypeVar

from PyQt6.QtCore import QObject, Qt, QTimer, QUrl, pyqtSignal, pyqtSlot
from PyQt6.QtGui import QCloseEvent
from PyQt6.QtWebEngineWidgets import QWebEngineView
from PyQt6.QtWidgets import QApplication

from mutauth.models import SurfaceOptions
from mutauth.surfaces.base import BrowserSurface, SurfaceHost

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Dispatcher(QObject):
    """Runs callables on the thread that owns this object (the GUI thread)."""

    submitted = pyqtSignal(object)

    def __init__(self) -> None:
        super().__init__()
        self.submitted.connect(self._execute, Qt.ConnectionType.QueuedConnection)

    def call(self, fn: Callable[[], Any]) -> Future:
        future: Future = Future()
        self.submitted.emit((fn, future))
        return future

    @pyqtSlot(object)
    def _execute(self, job: tuple[Callable[[], Any], Future]) -> None:
        fn, future = job
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(fn())
        except BaseException as exc:
            future.set_exception(exc)


class _SurfaceView(QWebEngineView):
    """Web view that remembers whether the user closed its window."""

    def __init__(self) -> None:
        super().__init__()
        self.closed = False

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802
        self.closed = True
        super().closeEvent(event)


class QtSurface(BrowserSurface):
    """A :class:`QWebEngineView` window driven from the flow thread."""

    def __init__(self, label: str, view: _SurfaceView, dispatcher: _Dispatcher) -> None:
        super().__init__(label)
        self._view = view
        self._dispatcher = dispatcher
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def _call(self, fn: Callable[[], T]) -> T:
        return await asyncio.wrap_future(self._dispatcher.call(fn))

    async def current_url(self) -> Optional[str]:
        def read() -> Optional[str]:
            if self._view.closed:
                raise RuntimeError(f"surface '{self.label}' was closed by the user")
            url = self._view.url()
            if url.isEmpty() or not url.isValid():
                return None
            return url.toString()

        return await self._call(read)

    async def navigate(self, url: str) -> None:
        await self._call(lambda: self._view.setUrl(QUrl(url)))

    async def close(self) -> None:
        if self._closed:
            return

        def close_view() -> None:
            self._view.close()
            self._view.deleteLater()

        await self._call(close_view)
        self._closed = True
        logger.debug("Closed surface %s", self.label)


class QtSurfaceHost(SurfaceHost):
    """Opens :class:`QtSurface` windows in the current :class:`QApplication`.

    Args:
        app: An existing application instance; one is created when omitted.
    """

    def __init__(self, app: Optional[QApplication] = None) -> None:
        existing = QApplication.instance()
        self._app = app or existing or QApplication(sys.argv[:1])
        self._app.setQuitOnLastWindowClosed(False)
        self._dispatcher = _Dispatcher()
        self._surfaces: dict[str, QtSurface] = {}

    def get_surface(self, label: str) -> Optional[BrowserSurface]:
        surface = self._surfaces.get(label)
        if surface is None or surface.is_closed:
            return None
        return surface

    async def open_surface(
        self,
        label: str,
        url: str,
        options: Optional[SurfaceOptions] = None,
    ) -> BrowserSurface:
        options = options or SurfaceOptions()

        def build() -> _SurfaceView:
            view = _SurfaceView()
            view.setWindowTitle(options.title or label)
            if options.width and options.height:
                view.resize(options.width, options.height)
            view.setUrl(QUrl(url))
            view.show()
            return view

        view = await asyncio.wrap_future(self._dispatcher.call(build))
        if options.content_protected:
            logger.debug("Content protection is not available for Qt surfaces")
        surface = QtSurface(label, view, self._dispatcher)
        self._surfaces[label] = surface
        logger.debug("Opened surface %s at %s", label, url)
        return surface

    def run(self, main: Callable[[SurfaceHost], Coroutine[Any, Any, T]]) -> T:
        """Spin the Qt event loop on this thread while *main* runs on a worker.

        The loop quits as soon as *main* finishes; its result is returned and
        its exception re-raised here. Ctrl-C quits the loop and raises
        :class:`KeyboardInterrupt` without waiting for the worker.
        """
        outcome: dict[str, Any] = {}
        interrupted = threading.Event()

        def worker() -> None:
            try:
                outcome["result"] = asyncio.run(main(self))
            except BaseException as exc:
                outcome["error"] = exc
            finally:
                self._dispatcher.call(self._app.quit)

        def on_sigint(signum: int, frame: Any) -> None:  # noqa: ANN401
            interrupted.set()
            self._app.quit()

        # exec() never returns to the interpreter by itself; Python signal
        # handlers only run on a tick.
        ticker = QTimer()
        ticker.timeout.connect(lambda: None)
        ticker.start(100)
        previous: Any = None
        on_main_thread = threading.current_thread() is threading.main_thread()
        if on_main_thread:
            previous = signal.signal(signal.SIGINT, on_sigint)

        thread = threading.Thread(target=worker, name="mutauth-flow", daemon=True)
        thread.start()
        try:
            self._app.exec()
        finally:
            ticker.stop()
            if on_main_thread:
                if previous is None:
                    previous = signal.default_int_handler
                signal.signal(signal.SIGINT, previous)

        if interrupted.is_set():
            logger.debug("Interrupted; abandoning the flow thread")
            raise KeyboardInterrupt
        thread.join()

        if "error" in outcome:
            raise outcome["error"]
        return outcome["result"]
