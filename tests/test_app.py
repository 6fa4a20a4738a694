import dataclasses

import pytest
from PIL import Image

from duotone.app import (
    SourceRejected,
    create_app,
    local_path,
    parse_options,
    resolve_source,
    source_ref,
)
from duotone.config import SETTINGS
from duotone.infrastructure.assets import AssetResolver


class StaticResolver(AssetResolver):
    def __init__(self, existing=()):
        super().__init__(probe=lambda path: path in existing)


@pytest.fixture
def asset_root(tmp_path):
    root = tmp_path / "assets"
    (root / "cards").mkdir(parents=True)
    Image.new("RGB", (6, 4), (220, 220, 220)).save(root / "cards" / "hero.png")
    Image.new("RGB", (2, 2), (9, 9, 9)).save(tmp_path / "secret.png")
    return root


@pytest.fixture
def settings(asset_root):
    return dataclasses.replace(SETTINGS, asset_root=str(asset_root), allowed_hosts=("cdn.example.com",))


@pytest.fixture
def client(settings):
    return create_app(settings=settings).test_client()


def test_source_ref_keeps_allowed_remote_urls(settings):
    assert source_ref("https://cdn.example.com/a.png", settings) == "https://cdn.example.com/a.png"


@pytest.mark.parametrize(
    "ref",
    [
        "http://169.254.169.254/latest/meta-data",
        "https://internal.local/a.png",
        "file:///etc/passwd",
        "ftp://cdn.example.com/a.png",
        "//cdn.example.com/a.png",
        "/../secret.png",
        "cards/../../secret.png",
    ],
)
def test_source_ref_rejects_unsafe_references(ref, settings):
    with pytest.raises(SourceRejected):
        source_ref(ref, settings)


def test_local_path_stays_under_root(asset_root):
    assert local_path("/cards/hero.png", str(asset_root)) == (asset_root / "cards" / "hero.png").resolve()
    # Absolute filesystem paths are read as root-relative, never as-is.
    assert local_path("/etc/passwd", str(asset_root)) == (asset_root / "etc" / "passwd").resolve()


def test_local_path_disabled_without_root():
    with pytest.raises(SourceRejected):
        local_path("/cards/hero.png", "")


def test_resolve_source_prefers_explicit_src(settings):
    resolver = StaticResolver()

    assert resolve_source({"src": "https://cdn.example.com/a.png", "base": "/x", "name": "y"}, resolver, settings) == (
        "https://cdn.example.com/a.png"
    )


def test_resolve_source_resolves_base_and_name(settings, asset_root):
    resolver = StaticResolver({"/cards/hero.jpg"})

    assert resolve_source({"base": "/cards/", "name": "hero"}, resolver, settings) == (
        asset_root / "cards" / "hero.jpg"
    ).resolve()


def test_resolve_source_returns_none_without_reference(settings):
    assert resolve_source({}, StaticResolver(), settings) is None


@pytest.mark.parametrize("name", ["..", "../secret", "a\\b", "a\x00b"])
def test_resolve_source_rejects_bad_names(name, settings):
    with pytest.raises(SourceRejected):
        resolve_source({"base": "/cards", "name": name}, StaticResolver(), settings)


def test_parse_options_reads_query_values():
    options = parse_options({"primary": "#94FFAF", "secondary": "000000", "threshold": "90", "crunch": "3"})

    assert options.primary_color == (0x94, 0xFF, 0xAF)
    assert options.secondary_color == (0, 0, 0)
    assert options.threshold == 90.0
    assert options.crunch == 3


def test_parse_options_rejects_bad_numbers():
    with pytest.raises(ValueError):
        parse_options({"crunch": "lots"})


def test_dither_endpoint_returns_png(client):
    response = client.get("/dither", query_string={"src": "/cards/hero.png", "crunch": "2"})

    assert response.status_code == 200
    assert response.mimetype == "image/png"


def test_dither_endpoint_resolves_base_and_name(client):
    response = client.get("/dither", query_string={"base": "/cards", "name": "hero"})

    assert response.status_code == 200
    assert response.mimetype == "image/png"


def test_dither_endpoint_404_for_unknown_asset(client):
    response = client.get("/dither", query_string={"base": "/cards", "name": "nothing"})

    assert response.status_code == 404


def test_dither_endpoint_rejects_invalid_threshold(client):
    response = client.get("/dither", query_string={"src": "/cards/hero.png", "threshold": "x"})

    assert response.status_code == 400


@pytest.mark.parametrize(
    "query",
    [
        {"src": "file:///etc/passwd"},
        {"src": "http://127.0.0.1:8080/admin.png"},
        {"src": "/../secret.png"},
        {"base": "../..", "name": "secret"},
        {"base": "/cards", "name": "../../secret"},
    ],
)
def test_dither_endpoint_rejects_sources_outside_the_asset_root(client, query):
    response = client.get("/dither", query_string=query)

    assert response.status_code == 400


def test_dither_endpoint_does_not_read_absolute_paths(client, asset_root):
    response = client.get("/dither", query_string={"src": str(asset_root.parent / "secret.png")})

    assert response.status_code == 502


def test_dither_endpoint_reports_load_error(client):
    response = client.get("/dither", query_string={"src": "/cards/missing.png"})

    assert response.status_code == 502


def test_dither_endpoint_falls_back_only_for_the_same_source(client, asset_root):
    good = client.get("/dither", query_string={"src": "/cards/hero.png"})
    (asset_root / "cards" / "hero.png").unlink()

    same = client.get("/dither", query_string={"src": "/cards/hero.png"})
    other = client.get("/dither", query_string={"src": "/cards/other.png"})
    recoloured = client.get("/dither", query_string={"src": "/cards/hero.png", "primary": "#FF0000"})

    assert same.status_code == 200
    assert same.data == good.data
    assert same.headers["X-Duotone-Fallback"] == "last-good"
    assert other.status_code == 502
    assert recoloured.status_code == 502


def test_resolve_and_invalidate_endpoints(client):
    found = client.get("/resolve", query_string={"base": "/cards", "name": "hero"})
    assert found.status_code == 200
    assert found.get_json() == {"path": "/cards/hero.png"}

    missing = client.get("/resolve", query_string={"base": "/cards", "name": "ghost"})
    assert missing.status_code == 404
    assert missing.get_json() == {"path": None}

    assert client.get("/health").get_json()["cached_assets"] == 1
    assert client.post("/resolve/invalidate").get_json() == {"cleared": 1}


@pytest.mark.parametrize("query", [{"base": "/cards", "name": "a\x00"}, {"base": "/../..", "name": "secret"}])
def test_resolve_endpoint_rejects_bad_requests(client, query):
    response = client.get("/resolve", query_string=query)

    assert response.status_code == 400
    assert response.get_json()["path"] is None
