from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import urlsplit

from flask import Flask, jsonify, request

from .config import SETTINGS, DuotoneSettings, configure_logging
from .errors import LoadError
from .infrastructure.assets import AssetResolver
from .infrastructure.cache import RenderCache
from .infrastructure.network import LOADER, SourceLoader, SourceRef
from .infrastructure.responses import encode_png, png_response
from .processing.color import DitherOptions
from .processing.pipeline import render_dithered

APP_VERSION = "1.0.0"

LOGGER = logging.getLogger(__name__)


class SourceRejected(ValueError):
    """A request named a source outside what this server may read."""


def local_path(ref: str, root: str) -> Path:
    """Map a root-relative ``ref`` such as ``/cards/dark.png`` under ``root``."""

    if not root:
        raise SourceRejected("Local assets are disabled")
    base = Path(root).resolve()
    try:
        candidate = (base / ref.lstrip("/")).resolve()
    except (OSError, ValueError) as exc:
        raise SourceRejected(f"Invalid asset path: {ref!r}") from exc
    if not candidate.is_relative_to(base):
        raise SourceRejected(f"Asset path escapes the asset root: {ref!r}")
    return candidate


def source_ref(ref: str, settings: DuotoneSettings = SETTINGS) -> SourceRef:
    """Turn a request-supplied reference into something the loader may open.

    HTTP(S) URLs must name a host in ``settings.allowed_hosts``. Other schemes
    are refused. Plain paths are taken relative to ``settings.asset_root``.
    """

    parts = urlsplit(ref)
    if parts.scheme in ("http", "https"):
        if (parts.hostname or "") not in settings.allowed_hosts:
            raise SourceRejected(f"Remote host not allowed: {parts.hostname}")
        return ref
    if parts.scheme or parts.netloc:
        raise SourceRejected(f"Unsupported source scheme: {parts.scheme or parts.netloc}")
    return local_path(ref, settings.asset_root)


def _check_name(name: str) -> None:
    if name in (".", "..") or any(char in name for char in "/\\\x00"):
        raise SourceRejected(f"Invalid asset name: {name!r}")


def resolve_asset(
    base: str,
    name: str,
    resolver: AssetResolver,
    settings: DuotoneSettings = SETTINGS,
) -> Optional[str]:
    """Validate ``base`` and ``name``, then look the asset up through ``resolver``."""

    _check_name(name)
    base = base.rstrip("/")
    source_ref(base or "/", settings)
    return resolver.resolve(base, name)


def resolve_source(
    args: Mapping[str, str],
    resolver: AssetResolver,
    settings: DuotoneSettings = SETTINGS,
) -> Optional[SourceRef]:
    """Pick the image a request refers to.

    An explicit ``src`` wins; otherwise ``base`` and ``name`` are resolved
    through the asset resolver. ``None`` means nothing could be found and
    :class:`SourceRejected` means the request asked for something off limits.
    """

    src = args.get("src")
    if src:
        return source_ref(src, settings)
    base = args.get("base")
    name = args.get("name")
    if base is None or not name:
        return None
    path = resolve_asset(base, name, resolver, settings)
    return None if path is None else source_ref(path, settings)


def parse_options(args: Mapping[str, str], settings: DuotoneSettings = SETTINGS) -> DitherOptions:
    defaults = DitherOptions.from_settings(settings)
    return DitherOptions.from_hex(
        args.get("primary", defaults.primary_color),
        args.get("secondary", defaults.secondary_color),
        threshold=float(args.get("threshold", defaults.threshold)),
        crunch=int(args.get("crunch", defaults.crunch)),
    )


def create_app(
    resolver: Optional[AssetResolver] = None,
    settings: DuotoneSettings = SETTINGS,
    loader: Optional[SourceLoader] = None,
) -> Flask:
    configure_logging()
    app = Flask(__name__)
    loader = loader or LOADER
    renders = RenderCache()

    def confined_exists(path: str) -> bool:
        try:
            return loader.exists(source_ref(path, settings))
        except SourceRejected:
            return False

    if resolver is None:
        resolver = AssetResolver(probe=confined_exists)

    @app.route("/dither")
    def dither():
        try:
            options = parse_options(request.args, settings)
            source = resolve_source(request.args, resolver, settings)
        except SourceRejected as exc:
            return (str(exc), 400)
        except ValueError as exc:
            return (f"Invalid dither parameters: {exc}", 400)
        if source is None:
            return ("Asset not found", 404)

        key = (str(source), options)
        try:
            data = encode_png(render_dithered(source, options, loader))
        except LoadError as exc:
            LOGGER.warning("%s", exc)
            cached = renders.get(key)
            if cached:
                return png_response(cached, stale=True)
            return (f"Source Error: {exc}", 502)
        renders.put(key, data)
        return png_response(data)

    @app.route("/resolve")
    def resolve():
        name = request.args.get("name", "")
        try:
            path = resolve_asset(request.args.get("base", ""), name, resolver, settings) if name else None
        except SourceRejected as exc:
            return jsonify(path=None, error=str(exc)), 400
        if path is None:
            return jsonify(path=None), 404
        return jsonify(path=path)

    @app.route("/resolve/invalidate", methods=["POST"])
    def invalidate():
        return jsonify(cleared=resolver.invalidate())

    @app.route("/health")
    def health():
        return jsonify(
            ok=True,
            version=APP_VERSION,
            threshold=settings.threshold,
            crunch=settings.crunch,
            cached_assets=len(resolver.cache),
        )

    @app.route("/settings")
    def settings_view():
        return jsonify(asdict(settings))

    return app


# Expose a module-level Flask application for WSGI servers (``duotone.app:app``).
app = create_app()
application = app
