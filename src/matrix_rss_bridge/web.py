"""Flask-based RSS feed server"""
import logging
import threading
from typing import Optional

from flask import Flask, Response, abort, request
from werkzeug.exceptions import HTTPException
from werkzeug.serving import make_server

from .feed import render_feed
from .store import SubscriptionStore

logger = logging.getLogger(__name__)

RSS_CONTENT_TYPE = "text/xml; charset=utf-8"


def create_app(store: SubscriptionStore, homeserver_url: str) -> Flask:
    """Build the feed server app: ``GET /<feed name>`` returns RSS"""
    app = Flask(__name__)

    @app.before_request
    def only_get():
        # 在路由匹配之前检查，任何非 GET 请求都返回 405
        if request.method != "GET":
            abort(405)

    @app.errorhandler(HTTPException)
    def bare_error(error: HTTPException):
        if error.code is None or error.code < 400:
            return error
        # 错误响应不带正文
        return Response(status=error.code)

    @app.route("/<feed_name>", methods=["GET"])
    def feed(feed_name: str):
        snapshot = store.get_feed(feed_name)
        if snapshot is None:
            abort(404)

        body = render_feed(snapshot.name, snapshot.items, homeserver_url)
        response = Response(body, status=200)
        response.headers["Content-Type"] = RSS_CONTENT_TYPE
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response

    return app


class FeedWebServer:
    """Runs the feed app in a background thread"""

    def __init__(self, store: SubscriptionStore, homeserver_url: str, host: str = "127.0.0.1", port: int = 3006):
        self.host = host
        self.port = port
        self.app = create_app(store, homeserver_url)
        self._server = None
        self._thread: Optional[threading.Thread] = None

    def start(self):
        """Bind and start serving in a daemon thread"""
        # Disable werkzeug's per-request logging
        logging.getLogger("werkzeug").setLevel(logging.WARNING)
        self._server = make_server(self.host, self.port, self.app, threaded=True)
        # port 0 时取系统分配的端口
        self.port = self._server.server_port
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True, name="feed-server")
        self._thread.start()
        logger.info(f"🌐 RSS 服务已启动: http://{self.host}:{self.port}/<room name>")

    def stop(self):
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self._server = None
        logger.info("🛑 RSS 服务已停止")
