import os
import sys
from http.server import BaseHTTPRequestHandler

# Vercel runs this file from api/, the proxy modules live in the project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mirror_proxy import app


class handler(BaseHTTPRequestHandler):
    """
    Vercel Serverless Function handler that wraps the Flask application.
    """

    def do_GET(self):
        self._handle_request()

    def do_POST(self):
        self._handle_request()

    def do_PUT(self):
        self._handle_request()

    def do_DELETE(self):
        self._handle_request()

    def do_PATCH(self):
        self._handle_request()

    def do_HEAD(self):
        self._handle_request()

    def do_OPTIONS(self):
        self._handle_request()

    def _handle_request(self):
        """Handle the request using Flask's test client."""
        # Request bodies are buffered in full before proxying
        content_length = int(self.headers.get('Content-Length', 0))
        body = self.rfile.read(content_length) if content_length > 0 else b''

        headers = {}
        for key, value in self.headers.items():
            headers[key] = value

        host = self.headers.get('Host', 'localhost')

        with app.test_client() as client:
            response = client.open(
                self.path,
                base_url=f"https://{host}",
                method=self.command,
                headers=headers,
                data=body
            )

            self.send_response(response.status_code)

            # Repeated headers such as Set-Cookie are sent one by one
            for key, value in response.headers.items():
                if key.lower() not in ['content-length', 'transfer-encoding']:
                    self.send_header(key, value)

            response_data = response.get_data()
            self.send_header('Content-Length', len(response_data))
            self.end_headers()

            if self.command != 'HEAD':
                self.wfile.write(response_data)
