from typing import List

import httpx
import pytest
from typer.testing import CliRunner

from catinfo import main
from catinfo.infrastructure.api.cat_api_client import CatApiClient
from catinfo.infrastructure.config.settings import set_config_for_testing

# These fixtures are defined in tests/conftest.py:
# runner: CliRunner
# png_bytes: bytes of a 4x3 PNG
# breed_payload: one /breeds element

IMAGE_ID = "0XYvRd7oD"
CDN_HOST = "cdn.example.com"
IMAGE_URL = f"https://{CDN_HOST}/images/{IMAGE_ID}.png"

@pytest.fixture
def catalog_requests() -> List[httpx.Request]:
    return []

@pytest.fixture
def catalog_transport(catalog_requests, breed_payload, png_bytes):
    """Serves a tiny catalog: one breed, one image, and the CDN file."""
    def handler(request: httpx.Request) -> httpx.Response:
        catalog_requests.append(request)
        path = request.url.path
        if request.url.host == CDN_HOST:
            return httpx.Response(200, content=png_bytes)
        if path.endswith("/breeds"):
            return httpx.Response(200, json=[breed_payload])
        if path.endswith("/images/search"):
            return httpx.Response(200, json=[{"id": IMAGE_ID, "url": IMAGE_URL, "width": 4, "height": 3}])
        if path.endswith(f"/images/{IMAGE_ID}"):
            return httpx.Response(200, json={"id": IMAGE_ID, "url": IMAGE_URL, "width": 4, "height": 3})
        return httpx.Response(404)
    return httpx.MockTransport(handler)

@pytest.fixture
def app_env(mocker, tmp_path, catalog_transport):
    """Real composition root with a temporary cache and a mocked catalog."""
    set_config_for_testing({
        "cache.disk.path": str(tmp_path / "cache" / "images.sqlite3"),
        "cat_api_key": "test-key",
        "api.retry.initial_backoff_seconds": 0.0,
    })
    mocker.patch("catinfo.main.load_configuration")
    mocker.patch("catinfo.main.setup_logging")

    def build_client(**kwargs):
        return CatApiClient(http_client=httpx.AsyncClient(transport=catalog_transport), **kwargs)

    mocker.patch("catinfo.main.CatApiClient", side_effect=build_client)
    mocker.patch.object(main, "_dependencies", None)
    return tmp_path

def downloads(requests: List[httpx.Request]) -> int:
    return sum(1 for request in requests if request.url.host == CDN_HOST)

def test_help_does_not_build_dependencies(runner: CliRunner, mocker):
    create = mocker.patch("catinfo.main.create_dependencies")

    result = runner.invoke(main.app, ["--help"])

    assert result.exit_code == 0
    assert "breeds" in result.stdout
    create.assert_not_called()

def test_breeds_command_flow(runner: CliRunner, app_env, catalog_requests):
    result = runner.invoke(main.app, ["breeds"])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert "Abyssinian" in result.stdout
    assert catalog_requests[0].headers["x-api-key"] == "test-key"

def test_breed_command_flow(runner: CliRunner, app_env, catalog_requests):
    result = runner.invoke(main.app, ["breed", "ABYS"])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert "Egypt" in result.stdout
    assert "reference image 4x3" in result.stdout
    assert downloads(catalog_requests) == 1

def test_unknown_breed_exits_with_error(runner: CliRunner, app_env):
    result = runner.invoke(main.app, ["breed", "nope"])

    assert result.exit_code == 1
    assert "Unknown breed: nope" in result.stdout

def test_image_is_served_from_disk_cache_on_next_run(runner: CliRunner, app_env, catalog_requests):
    output = app_env / "cat.png"

    first = runner.invoke(main.app, ["image", IMAGE_ID, "--output", str(output)])
    assert first.exit_code == 0, f"CLI command failed: {first.stdout}"
    assert output.exists()
    assert downloads(catalog_requests) == 1
    requests_after_first_run = len(catalog_requests)

    second = runner.invoke(main.app, ["image", IMAGE_ID])
    assert second.exit_code == 0, f"CLI command failed: {second.stdout}"
    assert len(catalog_requests) == requests_after_first_run

def test_cache_info_and_clear_cache_flow(runner: CliRunner, app_env):
    assert runner.invoke(main.app, ["image", IMAGE_ID]).exit_code == 0

    info = runner.invoke(main.app, ["cache-info"])
    assert info.exit_code == 0
    # Stored under the id key and the URL key
    assert "Disk" in info.stdout
    assert "2" in info.stdout

    cleared = runner.invoke(main.app, ["clear-cache"])
    assert cleared.exit_code == 0
    assert "Image cache cleared." in cleared.stdout

    assert runner.invoke(main.app, ["sweep"]).exit_code == 0

def test_images_command_downloads_page(runner: CliRunner, app_env, catalog_requests):
    save_dir = app_env / "downloads"

    result = runner.invoke(main.app, ["images", "abys", "--limit", "1", "--save-dir", str(save_dir)])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert (save_dir / f"{IMAGE_ID}.png").exists()
    assert "Saved 1 of 1 images" in result.stdout
