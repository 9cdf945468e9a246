"""mutauth -- Obtain an Apple Music User Token from an embedded browser surface.

The identity provider hands the Music User Token (MUT) back as a query
parameter on its final redirect. There is no callback channel, so this
package drives a browser surface, samples its navigation URL on a fixed
cadence, and extracts the token once it shows up.

Typical workflow::

    mutauth auth authorize "https://authorize.music.apple.com/woa?..."
    mutauth auth status

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and settings resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    urls: Strict URL parsing, token extraction and hand-back URLs.
    surfaces: Browser surface abstraction and toolkit backends.
    flow: The poll-and-match authorization flows.
    session: Remembered sessions and token verification.
"""

__version__ = "0.1.0"
