import logging
import threading
from typing import Optional
from flask import Flask, Response
from werkzeug.serving import make_server, BaseWSGIServer
from fakecloud.core.errors import ApiError, InternalFault, InvalidAction
from fakecloud.core import wire

XML_MIMETYPE = "text/xml"


class FakeServer:
    """Common plumbing for the simulated APIs.

    Subclasses build their routes in ``_register_routes`` and funnel every
    request through ``dispatch`` while holding the store lock, so requests
    are handled one at a time.
    """

    name = "fake"

    def __init__(self, host: str = "localhost", port: int = 0):
        self.host = host
        self.port = port
        self.logger = logging.getLogger(f"{__name__}.{self.name}")
        self.request_count = 0
        self.app = Flask(__name__)
        self._server: Optional[BaseWSGIServer] = None
        self._thread: Optional[threading.Thread] = None
        self._register_routes(self.app)

    def _register_routes(self, app: Flask) -> None:
        raise NotImplementedError

    # --- Lifecycle ---

    def start(self) -> "FakeServer":
        """Binds the listener and serves on a daemon thread."""
        if self._server is not None:
            raise RuntimeError(f"{self.name} server is already running at {self.url}")
        self._server = make_server(self.host, self.port, self.app, threaded=True)
        self.port = self._server.server_port
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name=f"fakecloud-{self.name}",
            daemon=True
        )
        self._thread.start()
        self.logger.info(f"Fake {self.name} server listening on {self.url}")
        return self

    def quit(self) -> None:
        """Stops accepting requests. In-flight requests are not waited on."""
        if self._server is None:
            return
        self._server.shutdown()
        self._thread.join(timeout=5)
        self._server.server_close()
        self._server = None
        self._thread = None
        self.logger.info(f"Fake {self.name} server stopped")

    @property
    def running(self) -> bool:
        return self._server is not None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.quit()

    # --- Dispatch ---

    def next_request_id(self) -> str:
        request_id = f"req{self.request_count:X}"
        self.request_count += 1
        return request_id

    def dispatch(self, handler, args, render, request_id: str) -> Response:
        """Runs ``handler(self, *args)`` and renders its result or error.

        Callers hold the store lock.
        """
        try:
            body = render(handler(self, *args, request_id))
        except ApiError as e:
            self.logger.info(f"{handler.__name__} failed for {request_id}: {e}")
            return self.error(e, request_id)
        except Exception:
            self.logger.exception(f"Unexpected error in {handler.__name__} for {request_id}")
            return self.error(InternalFault(), request_id)
        return self.xml(body, request_id=request_id)

    def unknown_action(self, description: str) -> Response:
        self.logger.warning(f"Fake {self.name} server doesn't know how to: {description}")
        return self.error(InvalidAction())

    def error(self, error: ApiError, request_id: str = "") -> Response:
        return self.xml(wire.error_response(error, request_id), status=error.status_code, request_id=request_id)

    def xml(self, body: bytes, status: int = 200, request_id: str = "") -> Response:
        response = Response(body, status=status, mimetype=XML_MIMETYPE)
        if request_id:
            response.headers["x-amz-request-id"] = request_id
        return response
