"""
Fake varnish-agent /stats server for testing without Varnish.

    python -m varnishagent.mock.fake_varnish_agent
    varnishagent once --url http://localhost:6085
"""

from __future__ import annotations

import json
from http.server import HTTPServer, BaseHTTPRequestHandler

from varnishagent.mock.generator import MockVarnish


_varnish = MockVarnish(seed=42)


class _StatsHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        if self.path == "/stats":
            body = json.dumps(_varnish.stats()).encode()
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
        else:
            self.send_response(404)
            self.end_headers()

    def log_message(self, format, *args):
        pass  # Suppress request logging noise


def run_fake_server(host: str = "127.0.0.1", port: int = 6085):
    server = HTTPServer((host, port), _StatsHandler)
    print(f"Fake varnish-agent running at http://{host}:{port}/stats")
    print("Press Ctrl+C to stop.\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    server.server_close()
    print("\nServer stopped.")


if __name__ == "__main__":
    run_fake_server()
