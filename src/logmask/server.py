"""HTTP sidecar server for logmask.

Runs as a lightweight stdlib HTTP server on localhost.  The web app calls
it to mask an upload before anything is forwarded to the analysis model.

Endpoints:
    POST /mask            — Mask a log (JSON body)
    POST /ledger/diff     — Approximate ledger for an original/masked pair
    GET  /health          — Health check

All endpoints expect/return JSON.
Body format for /mask: {"logContent": "...", "filename": "app.log"}
"""

from __future__ import annotations
import json
import logging
import os
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from .config import create_redactor, create_upload_policy, load_default
from .errors import FileTooLarge, UnsupportedFileType, UploadRejected
from .ledger import ledger_from_diff
from .redactor import Redactor
from .upload import UploadPolicy, content_hash

logger = logging.getLogger(__name__)

DEFAULT_PORT = int(os.environ.get("LOGMASK_PORT", "18792"))

# Shared state; the redactor is stateless per call, so one instance serves all threads
_redactor: Redactor | None = None
_policy: UploadPolicy | None = None


def _get_redactor() -> Redactor:
    global _redactor
    if _redactor is None:
        configure(load_default())
    return _redactor


def _get_policy() -> UploadPolicy:
    global _policy
    if _policy is None:
        configure(load_default())
    return _policy


def configure(config: dict[str, Any]) -> None:
    """Install the redactor and upload policy the handlers use."""
    global _redactor, _policy
    _redactor = create_redactor(config)
    _policy = create_upload_policy(config)


class BadRequest(Exception):
    pass


class LogMaskHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the logmask sidecar."""

    def _read_json(self) -> dict[str, Any]:
        length = int(self.headers.get("Content-Length", 0))
        # Bound the read by the upload limit plus room for the JSON envelope
        limit = _get_policy().max_bytes
        if length > limit * 2:
            raise FileTooLarge(length, limit)
        body = self.rfile.read(length).decode("utf-8")
        try:
            data = json.loads(body) if body else {}
        except json.JSONDecodeError as e:
            raise BadRequest(f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise BadRequest("expected a JSON object")
        return data

    def _respond(self, status: int, data: Any) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    def do_GET(self) -> None:
        if self.path == "/health":
            self._respond(200, {"status": "ok"})
        else:
            self._respond(404, {"error": "not found"})

    def do_POST(self) -> None:
        try:
            body = self._read_json()

            if self.path == "/mask":
                text = body.get("logContent")
                if not isinstance(text, str):
                    raise BadRequest("logContent must be a string")
                _get_policy().check(body.get("filename"), len(text.encode("utf-8")))
                result = _get_redactor().scan(text)
                payload = result.to_dict()
                payload["fileHash"] = content_hash(text)
                self._respond(200, payload)

            elif self.path == "/ledger/diff":
                original = body.get("original")
                masked = body.get("masked")
                if not isinstance(original, str) or not isinstance(masked, str):
                    raise BadRequest("original and masked must be strings")
                records = ledger_from_diff(original, masked)
                self._respond(200, {"redactions": [r.to_dict() for r in records]})

            else:
                self._respond(404, {"error": "not found"})

        except BadRequest as e:
            self._respond(400, {"error": str(e)})
        except FileTooLarge as e:
            self._respond(413, {"error": str(e)})
        except UnsupportedFileType as e:
            self._respond(415, {"error": str(e)})
        except UploadRejected as e:
            self._respond(400, {"error": str(e)})
        except Exception as e:
            logger.exception("unexpected error handling %s", self.path)
            self._respond(500, {"error": str(e)})


def serve(port: int = DEFAULT_PORT, config: dict[str, Any] | None = None) -> None:
    """Start the logmask HTTP sidecar."""
    configure(config if config is not None else load_default())

    server = ThreadingHTTPServer(("127.0.0.1", port), LogMaskHandler)
    logger.info("logmask sidecar listening on http://127.0.0.1:%d", port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("shutting down")
        server.shutdown()


if __name__ == "__main__":
    import argparse
    from .config import load_from_yaml

    parser = argparse.ArgumentParser(description="logmask HTTP sidecar")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--config", default=None)
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    serve(port=args.port, config=load_from_yaml(args.config) if args.config else None)
