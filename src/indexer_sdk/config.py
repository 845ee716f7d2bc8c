"""Option loading: defaults from env vars, optional TOML file, override functions."""

from __future__ import annotations

import json
import os
from dataclasses import replace
from pathlib import Path
from typing import Callable

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from indexer_sdk.models.config import Configuration, SDKOptions

OptionFn = Callable[[SDKOptions], SDKOptions]

ENV_TOKEN = "INDEXER_TOKEN"
ENV_URL = "INDEXER_URL"
ENV_API = "INDEXER_API"
ENV_API_KEY = "INDEXER_API_KEY"


def default_options() -> SDKOptions:
    """Options populated from the process environment."""
    return SDKOptions(
        token=os.environ.get(ENV_TOKEN, ""),
        url=os.environ.get(ENV_URL, ""),
        api=os.environ.get(ENV_API, ""),
        api_key=os.environ.get(ENV_API_KEY, ""),
    )


def with_token(token: str) -> OptionFn:
    return lambda opts: replace(opts, token=token)


def with_url(url: str) -> OptionFn:
    return lambda opts: replace(opts, url=url)


def with_api(api: str) -> OptionFn:
    return lambda opts: replace(opts, api=api)


def with_api_key(api_key: str) -> OptionFn:
    return lambda opts: replace(opts, api_key=api_key)


def with_http_timeout(seconds: float) -> OptionFn:
    return lambda opts: replace(opts, http_timeout=seconds)


def apply_options(opts: SDKOptions, *fns: OptionFn) -> SDKOptions:
    """Apply override functions in order; later ones win."""
    for fn in fns:
        opts = fn(opts)
    return opts


def build_options(*fns: OptionFn) -> SDKOptions:
    """Environment defaults with ``fns`` applied on top."""
    return apply_options(default_options(), *fns)


def load_options(
    config_path: str | Path | None = None,
    *fns: OptionFn,
) -> SDKOptions:
    """Load SDK options from a TOML file, env vars, and override functions.

    Priority (highest wins):
        1. Override functions
        2. Environment variables (INDEXER_TOKEN, etc.)
        3. TOML config file
        4. Defaults from SDKOptions
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    opts = SDKOptions()

    # ── Indexer section ────────────────────────────────────
    indexer = raw.get("indexer", {})
    if v := indexer.get("token"):
        opts = replace(opts, token=str(v))
    if v := indexer.get("url"):
        opts = replace(opts, url=str(v))
    if v := indexer.get("api"):
        opts = replace(opts, api=str(v))
    if v := indexer.get("api_key"):
        opts = replace(opts, api_key=str(v))

    # ── Client section ─────────────────────────────────────
    client = raw.get("client", {})
    if v := client.get("http_timeout"):
        opts = replace(opts, http_timeout=float(v))
    if v := client.get("fetch_batch"):
        opts = replace(opts, fetch_batch=int(v))
    if v := client.get("fetch_timeout"):
        opts = replace(opts, fetch_timeout=float(v))
    if v := client.get("error_backoff"):
        opts = replace(opts, error_backoff=float(v))

    # ── Environment variable overrides ─────────────────────
    if token := os.environ.get(ENV_TOKEN):
        opts = replace(opts, token=token)
    if url := os.environ.get(ENV_URL):
        opts = replace(opts, url=url)
    if api := os.environ.get(ENV_API):
        opts = replace(opts, api=api)
    if api_key := os.environ.get(ENV_API_KEY):
        opts = replace(opts, api_key=api_key)

    return apply_options(opts, *fns)


def load_configuration(path: str | Path) -> Configuration:
    """Load an app registration document from a .json or .toml file."""
    p = Path(path).expanduser()
    if p.suffix == ".toml":
        with open(p, "rb") as f:
            raw = tomllib.load(f)
    else:
        with open(p) as f:
            raw = json.load(f)
    return Configuration.from_dict(raw)
