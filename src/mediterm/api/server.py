"""
ASGI entry point for the MediTerm API.

Usage
-----
    $ python -m mediterm.api.server          # development server with reload
    $ uvicorn mediterm.api.server:app        # any ASGI runner
"""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from mediterm.api.app import create_app
from mediterm.core.settings import load_settings
from mediterm.llm.client import API_KEY_ENV
from mediterm.llm.models import resolve_model

# Settings are read when the app is built, so .env has to be loaded first.
load_dotenv(dotenv_path=Path(".env"))

app = create_app()


def _startup_banner() -> list[str]:
    """Describe the default provider and whether a key for it is available."""
    cfg = load_settings()
    model = resolve_model(cfg.completion_config())
    key_sources = ["MEDITERM_API_KEY", *API_KEY_ENV.get(model.provider, ())]
    found = next((name for name in key_sources if os.getenv(name)), None)

    key_status = f"found in {found}" if found else "MISSING (" + " / ".join(key_sources) + ")"
    backoff = ", ".join(f"{delay:g}s" for delay in cfg.backoff_schedule()) or "none"
    return [
        f"provider      : {model.provider} ({model.name})",
        f"endpoint      : {model.base_url}",
        f"api key       : {key_status}",
        f"chunk budget  : {cfg.max_tokens_per_chunk} tokens",
        f"quota backoff : {backoff}",
        f"step deadline : {cfg.step_timeout_seconds:g}s",
    ]


def main() -> None:
    """Run the API server locally for development."""
    print(" MediTerm API ".center(60, "="))
    for line in _startup_banner():
        print(line)
    print("=" * 60)

    uvicorn.run(
        "mediterm.api.server:app",
        host=os.getenv("MEDITERM_HOST", "127.0.0.1"),
        port=int(os.getenv("MEDITERM_PORT", "8000")),
        reload=True,
    )


if __name__ == "__main__":
    main()
