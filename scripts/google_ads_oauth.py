"""Obtain a Google Ads refresh token for ``adsdash refresh``.

Usage:
  export ADSDASH_GOOGLE_ADS_CLIENT_ID=...
  export ADSDASH_GOOGLE_ADS_CLIENT_SECRET=...
  python scripts/google_ads_oauth.py [--port 8080]

Prints the ``ADSDASH_GOOGLE_ADS_REFRESH_TOKEN`` export line to paste into
your shell or ``.env``. Needs the ``oauth`` extra (google-auth-oauthlib).
"""

from __future__ import annotations

import os

import click

ENV_PREFIX = "ADSDASH_GOOGLE_ADS_"
ADWORDS_SCOPE = "https://www.googleapis.com/auth/adwords"


@click.command()
@click.option("--port", default=8080, show_default=True, help="Local redirect port")
def main(port: int) -> None:
    client_id = os.environ.get(ENV_PREFIX + "CLIENT_ID")
    client_secret = os.environ.get(ENV_PREFIX + "CLIENT_SECRET")
    if not client_id or not client_secret:
        raise click.ClickException(
            f"Set {ENV_PREFIX}CLIENT_ID and {ENV_PREFIX}CLIENT_SECRET first."
        )

    try:
        from google_auth_oauthlib.flow import InstalledAppFlow
    except ImportError:
        raise click.ClickException(
            "google-auth-oauthlib is missing. Install with: pip install -e '.[oauth]'"
        )

    flow = InstalledAppFlow.from_client_config(
        {
            "installed": {
                "client_id": client_id,
                "client_secret": client_secret,
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": "https://oauth2.googleapis.com/token",
                "redirect_uris": [f"http://localhost:{port}"],
            }
        },
        scopes=[ADWORDS_SCOPE],
    )
    creds = flow.run_local_server(port=port, prompt="consent", access_type="offline")
    if not creds.refresh_token:
        raise click.ClickException("Google did not return a refresh token; revoke access and retry.")

    click.echo("✅ OAuth complete. Keep this out of version control:", err=True)
    click.echo(f"export {ENV_PREFIX}REFRESH_TOKEN={creds.refresh_token}")


if __name__ == "__main__":
    main()
