"""Static files come from the compiled table, with mode-dependent caching."""

from pathlib import Path

import pytest

from mwm import App, AppConfig
from mwm.middleware.static import StaticFiles
from mwm.routing.compiler import StaticEntry
from mwm.testing import TestClient

IMMUTABLE = "public, max-age=31536000, immutable"


def _app(tmp_path: Path, **overrides: object) -> App:
    return App(AppConfig(database_url=f"sqlite:///{tmp_path / 'static.db'}", **overrides))


class TestCacheHeaders:
    async def test_development_is_no_cache(self, tmp_path: Path) -> None:
        async with TestClient(_app(tmp_path)) as client:
            response = await client.get("/styles.css")
        assert response.status == 200
        assert response.content_type.startswith("text/css")
        assert response.header("cache-control") == "no-cache"

    async def test_production_is_immutable(self, tmp_path: Path) -> None:
        app = _app(tmp_path, debug=False, secret_key="test-secret")
        async with TestClient(app) as client:
            response = await client.get("/bundle.js")
        assert response.status == 200
        assert response.content_type.startswith("text/javascript")
        assert response.header("cache-control") == IMMUTABLE

    def test_config_values(self) -> None:
        assert AppConfig().static_cache_control == "no-cache"
        assert AppConfig(debug=False, secret_key="s").static_cache_control == IMMUTABLE


class TestFallThrough:
    async def test_unknown_file_is_a_page_404(self, tmp_path: Path) -> None:
        async with TestClient(_app(tmp_path)) as client:
            response = await client.get("/missing.css")
        assert response.status == 404

    async def test_post_is_not_served(self, tmp_path: Path) -> None:
        async with TestClient(_app(tmp_path)) as client:
            response = await client.post("/styles.css")
        assert response.status == 404

    async def test_only_table_entries_are_served(self, tmp_path: Path) -> None:
        public = tmp_path / "public"
        public.mkdir()
        (public / "listed.txt").write_text("listed")
        (public / "secret.txt").write_text("secret")
        routes = tmp_path / "routes"
        routes.mkdir()
        (routes / "__root.html").write_text("{% block content %}{% end %}")

        app = _app(tmp_path, routes_dir=routes, public_dir=public)
        async with TestClient(app) as client:
            # Files added after compilation are not picked up
            listed = await client.get("/listed.txt")
            (public / "late.txt").write_text("late")
            late = await client.get("/late.txt")
        assert listed.text == "listed"
        assert late.status == 404


class TestMiddleware:
    @pytest.fixture
    def public(self, tmp_path: Path) -> Path:
        (tmp_path / "app.js").write_text("console.log(1)")
        return tmp_path

    def test_paths(self, public: Path) -> None:
        static = StaticFiles(
            [StaticEntry(path="/app.js", file="app.js", content_type="text/javascript")],
            directory=public,
        )
        assert static.paths == ["/app.js"]

    async def test_deleted_file_falls_through(self, tmp_path: Path) -> None:
        public = tmp_path / "public"
        public.mkdir()
        (public / "gone.css").write_text("a{}")
        routes = tmp_path / "routes"
        routes.mkdir()
        (routes / "__root.html").write_text("{% block content %}{% end %}")

        app = _app(tmp_path, routes_dir=routes, public_dir=public)
        async with TestClient(app) as client:
            (public / "gone.css").unlink()
            response = await client.get("/gone.css")
        assert response.status == 404
