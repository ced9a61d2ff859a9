"""Rank and deduplicate a batch of headlines gathered by the caller.

POST body: {"headlines": [...], "dedupeMode": "default"|"strict",
"excludeUrls": [...] or "a,b", "limit": 5}
"""
import json
import logging
import sys
import os
from http.server import BaseHTTPRequestHandler

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from headline_ranker.options import build_options, resolve_limit
from headline_ranker.runner import load_records, rank_headlines_payload

log = logging.getLogger(__name__)


def handle_rank_request(data):
    """Validate a decoded request body. Returns (status, payload)."""
    if not isinstance(data, dict):
        return 400, {"error": "Request body must be a JSON object"}
    try:
        records = load_records(data)
        options = build_options(data.get("dedupeMode"), data.get("excludeUrls"))
    except ValueError as exc:
        return 400, {"error": str(exc)}
    limit = resolve_limit(data.get("limit"))
    return 200, rank_headlines_payload(records, options, limit=limit)


class handler(BaseHTTPRequestHandler):
    def _send_json(self, status, payload):
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode())

    def do_POST(self):
        try:
            content_length = int(self.headers.get("Content-Length", 0))
            body = self.rfile.read(content_length)
            data = json.loads(body or b"{}")
        except ValueError:
            self._send_json(400, {"error": "Invalid JSON body"})
            return

        try:
            status, payload = handle_rank_request(data)
        except Exception as exc:
            log.exception("Ranking failed")
            self._send_json(500, {"error": str(exc)})
            return
        self._send_json(status, payload)

    def do_OPTIONS(self):
        """Handle CORS preflight requests."""
        self.send_response(200)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()
