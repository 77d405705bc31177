"""Tests for the Flask feed server."""

import pytest
import requests

from matrix_rss_bridge.web import FeedWebServer, create_app


@pytest.fixture
def client(store, homeserver_url):
    app = create_app(store, homeserver_url)
    app.config["TESTING"] = True
    return app.test_client()


class TestFeedRoute:

    def test_feed_found(self, client, store, make_item):
        store.subscribe("!a:x", "news")
        store.append_item("news", make_item(1, page_name="Hi"))

        response = client.get("/news")

        assert response.status_code == 200
        assert response.headers["Content-Type"] == "text/xml; charset=utf-8"
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert b"<title>news messages</title>" in response.data
        assert b"<title>Hi</title>" in response.data

    def test_empty_feed(self, client, store):
        store.subscribe("!a:x", "news")

        response = client.get("/news")

        assert response.status_code == 200
        assert b"<item>" not in response.data

    def test_unknown_feed(self, client):
        response = client.get("/missing")

        assert response.status_code == 404
        assert response.data == b""

    def test_root_path(self, client):
        assert client.get("/").status_code == 404

    def test_extra_segments(self, client, store):
        store.subscribe("!a:x", "news")

        assert client.get("/news/extra").status_code == 404

    def test_percent_encoded_name(self, client, store):
        store.subscribe("!a:x", "weekly links")

        assert client.get("/weekly%20links").status_code == 200

    def test_unicode_name(self, client, store):
        store.subscribe("!a:x", "新闻")

        assert client.get("/%E6%96%B0%E9%97%BB").status_code == 200

    @pytest.mark.parametrize("method", ["post", "put", "delete", "patch"])
    def test_non_get_is_rejected(self, client, store, method):
        store.subscribe("!a:x", "news")

        response = getattr(client, method)("/news")

        assert response.status_code == 405
        assert response.data == b""

    def test_non_get_on_unknown_path(self, client):
        assert client.post("/no/such/path").status_code == 405

    def test_rerendered_per_request(self, client, store, make_item):
        store.subscribe("!a:x", "news")
        first = client.get("/news").data

        store.append_item("news", make_item(1, page_name="Later"))
        second = client.get("/news").data

        assert b"Later" not in first
        assert b"Later" in second


class TestFeedWebServer:

    def test_start_and_stop(self, store, homeserver_url):
        store.subscribe("!a:x", "news")
        server = FeedWebServer(store, homeserver_url, host="127.0.0.1", port=0)
        server.start()
        url = f"http://127.0.0.1:{server.port}"
        session = requests.Session()
        session.trust_env = False
        session.headers["Connection"] = "close"
        thread = server._thread
        try:
            assert session.get(f"{url}/news", timeout=5).status_code == 200
            assert session.get(f"{url}/missing", timeout=5).status_code == 404
        finally:
            session.close()
            server.stop()

        assert not thread.is_alive()
        # 监听 socket 已关闭
        with pytest.raises(requests.ConnectionError):
            session.get(f"{url}/news", timeout=5)

    def test_stop_without_start(self, store, homeserver_url):
        FeedWebServer(store, homeserver_url, port=0).stop()
