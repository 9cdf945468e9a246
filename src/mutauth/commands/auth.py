"""Auth commands -- obtain, inspect and forget a Music User Token.

Provides the ``mutauth auth`` sub-command group. ``authorize`` opens the
identity provider's sign-in page in an embedded browser surface, waits for
the redirect carrying the token, prints it on stdout and remembers the
session for later runs.

Typical workflow::

    mutauth auth authorize "https://authorize.music.apple.com/woa?..."
    mutauth auth status
    mutauth auth logout
"""

from __future__ import annotations

from typing import Optional

import typer

from mutauth.output import error, format_response, get_output, info, print_data, success, suggest


auth_app = typer.Typer(no_args_is_help=True)


@auth_app.command("authorize")
def auth_authorize(
    ctx: typer.Context,
    oauth_url: str = typer.Argument(help="Identity provider authorization URL."),
    variant: Optional[str] = typer.Option(
        None, "--variant", help="Flow variant: auto, single, multi."
    ),
    backend: Optional[str] = typer.Option(
        None, "--backend", "-b", help="Browser surface backend (e.g. qt)."
    ),
    return_url: Optional[str] = typer.Option(
        None, "--return-url", help="App URL the single-surface flow hands the token back to."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", min=0.0, help="Give up after this many seconds."
    ),
    verify: Optional[bool] = typer.Option(
        None, "--verify/--no-verify", help="Verify the token against the Apple Music API."
    ),
    developer_token_source: Optional[str] = typer.Option(
        None,
        "--developer-token-source",
        "-s",
        help="Developer token source: env:VAR, file:/path, prompt, store:NAME.",
    ),
    dev_mode: Optional[bool] = typer.Option(
        None, "--dev/--no-dev", help="Development build (macOS sign-in stall workaround)."
    ),
) -> None:
    """Run an authorization and print the Music User Token.

    A remembered session is reused unless ``--force`` is active. The token
    is the only thing written to stdout (a JSON document with ``--json``),
    so it can be captured by scripts.

    Args:
        ctx: Typer context carrying the ``force`` flag.
        oauth_url: The identity provider's authorization URL.
        variant: Flow variant override.
        backend: Surface backend override.
        return_url: Return point for the single-surface flow.
        timeout: Optional deadline in seconds.
        verify: Verify the token before remembering it.
        developer_token_source: Where to read the developer token.
        dev_mode: Development build override.

    Raises:
        MutauthError: Propagated to :func:`mutauth.app.main`, which exits
            with the error's code.

    Example::

        mutauth auth authorize "$OAUTH_URL" --timeout 300
        mutauth --json auth authorize "$OAUTH_URL" --verify -s env:APPLE_DEVELOPER_TOKEN
    """
    from mutauth.config import resolve_credential, resolve_settings
    from mutauth.exceptions import InvalidUsageError
    from mutauth.flow import APP_SURFACE, create_flow
    from mutauth.models import FlowVariant, MusicTokens
    from mutauth.session import MusicKitAuthorizationService
    from mutauth.surfaces import SurfaceHost, get_surface_host

    settings = resolve_settings(
        cli_variant=variant,
        cli_backend=backend,
        cli_dev_mode=dev_mode,
        cli_verify=verify,
    )
    force = ctx.obj.get("force", False) if ctx.obj else False

    service = MusicKitAuthorizationService(
        verify=settings.verify, storefront_url=settings.storefront_url
    )
    if not force:
        remembered = service.passively_authorize()
        if remembered is not None:
            info("Using remembered session.")
            suggest("Run with --force to authorize again.")
            _print_token(remembered.music_user_token, settings.variant.value, remembered=True)
            return

    source = developer_token_source or settings.developer_token_source
    developer_token = resolve_credential(source) if source else ""
    if settings.verify and not developer_token:
        raise InvalidUsageError(
            "Token verification needs a developer token (--developer-token-source)"
        )

    host = get_surface_host(settings.backend)
    flow = create_flow(host, settings.variant, dev_mode=settings.dev_mode)

    primary_url: Optional[str] = None
    if flow.name == FlowVariant.SINGLE.value:
        primary_url = return_url or settings.return_url
        if not primary_url:
            raise InvalidUsageError("The single-surface flow needs --return-url")

    async def run(surface_host: SurfaceHost) -> MusicTokens:
        primary = None
        if primary_url is not None:
            primary = await surface_host.open_surface(APP_SURFACE, primary_url)
        try:
            return await service.authorize(
                flow,
                oauth_url,
                developer_token=developer_token,
                surface=primary,
                timeout=timeout,
                force=True,
            )
        finally:
            if primary is not None:
                await primary.close()

    info("Waiting for sign-in in the authorization window...")
    tokens = host.run(run)

    _print_token(tokens.music_user_token, flow.name, remembered=False)
    success("Authorized.")
    suggest("Check the session: mutauth auth status")


@auth_app.command("status")
def auth_status() -> None:
    """Show the remembered session.

    Example::

        mutauth auth status
        mutauth --json auth status
    """
    from mutauth.session import CredentialStore, MusicKitAuthorizationService

    store = CredentialStore(MusicKitAuthorizationService.key)
    entry = store.load()
    if entry is None:
        info("No remembered session.")
        suggest("Authorize: mutauth auth authorize <oauth-url>")
        return

    output = get_output()
    headers = ["Field", "Value"]
    rows = [
        ["Session", MusicKitAuthorizationService.key],
        ["Music User Token", _preview(entry.credential)],
        ["Developer Token", "set" if entry.metadata.get("developer_token") else "-"],
        ["Storefront", entry.metadata.get("storefront", "-")],
        ["Authorized At", entry.metadata.get("authorized_at", "-")],
        ["Valid", str(store.is_valid())],
        ["Path", str(store.path)],
    ]
    output.print_table(headers, rows, title="Remembered Session")


@auth_app.command("logout")
def auth_logout(ctx: typer.Context) -> None:
    """Forget the remembered session.

    Asks for confirmation unless ``--force`` is active.

    Example::

        mutauth auth logout
        mutauth --force auth logout
    """
    from mutauth.session import MusicKitAuthorizationService

    service = MusicKitAuthorizationService()
    if service.remembered_entry() is None:
        info("No remembered session.")
        return

    force = ctx.obj.get("force", False) if ctx.obj else False
    no_input = ctx.obj.get("no_input", False) if ctx.obj else False
    if not force:
        if no_input:
            error("Refusing to forget the session without confirmation; use --force.")
            raise typer.Exit(code=2)
        confirmed = typer.confirm("Forget the remembered session?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    service.unauthorize()
    success("Session forgotten.")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _print_token(token: str, variant: str, *, remembered: bool) -> None:
    """Write the token to stdout: bare in text modes, a document with ``--json``."""
    from mutauth.output import OutputFormat

    if get_output().format == OutputFormat.JSON:
        format_response(
            {"music_user_token": token, "variant": variant, "remembered": remembered}
        )
    else:
        print_data(token)


def _preview(secret: str) -> str:
    return secret[:8] + "..." if len(secret) > 8 else secret
