"""Built-in CLI sub-commands for mutauth.

* :mod:`~mutauth.commands.auth` -- run an authorization, inspect or forget
  the remembered session.
* :mod:`~mutauth.commands.config` -- view and modify global settings.

Each module exports a :class:`typer.Typer` sub-application registered on the
root app by :func:`mutauth.app.main`.
"""
