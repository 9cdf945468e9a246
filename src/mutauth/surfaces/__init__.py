"""Browser surface abstraction and toolkit backends.

The flows only depend on :class:`BrowserSurface` and :class:`SurfaceHost`.
Concrete backends are imported lazily by :func:`get_surface_host` so that
the core package never requires a GUI toolkit.

Built-in backends:

* ``qt`` -- :class:`~mutauth.surfaces.qt.QtSurfaceHost` (PyQt6 WebEngine,
  ``pip install "mutauth[qt]"``).
"""

from __future__ import annotations

import importlib

from mutauth.exceptions import ConfigError
from mutauth.surfaces.base import BrowserSurface, SurfaceHost

BACKENDS: dict[str, tuple[str, str, str]] = {
    "qt": ("mutauth.surfaces.qt", "QtSurfaceHost", "qt"),
}
"""Backend name -> (module, class name, extra that installs its toolkit)."""


def get_surface_host(name: str) -> SurfaceHost:
    """Instantiate the surface host registered as *name*.

    Args:
        name: Backend name (e.g. ``"qt"``).

    Returns:
        A ready-to-use :class:`SurfaceHost`.

    Raises:
        ConfigError: If the backend is unknown or its toolkit is not
            installed.
    """
    try:
        module_name, class_name, extra = BACKENDS[name]
    except KeyError:
        available = ", ".join(sorted(BACKENDS)) or "(none)"
        raise ConfigError(
            f"Unknown surface backend '{name}'. Available backends: {available}"
        ) from None

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigError(
            f"Surface backend '{name}' is not installed ({exc}). "
            f'Install it with: pip install "mutauth[{extra}]"'
        ) from exc

    host_cls = getattr(module, class_name)
    return host_cls()


__all__ = ["BACKENDS", "BrowserSurface", "SurfaceHost", "get_surface_host"]
