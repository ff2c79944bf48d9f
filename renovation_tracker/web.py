from __future__ import annotations

import argparse
import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import parse_qs, urlparse, unquote

from renovation_tracker.ai import request_advice
from renovation_tracker.config import load_config
from renovation_tracker.core.models import (
    Category,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationError,
)
from renovation_tracker.repository import TransactionRepository
from renovation_tracker.stores import get_store
from renovation_tracker.summary import (
    aggregate_by_category,
    budget_utilization,
    compute_stats,
    is_over_budget,
    utilization_band,
)
from renovation_tracker.utils import filter_transactions, sort_for_display

logger = logging.getLogger(__name__)

_TX_PREFIX = "/api/transactions/"


def _json_response(
    handler: BaseHTTPRequestHandler,
    payload: Any,
    status: int = 200,
    persisted: bool | None = None,
) -> None:
    body = b"" if payload is None else json.dumps(payload, ensure_ascii=False).encode("utf-8")
    handler.send_response(status)
    handler.send_header("Content-Type", "application/json; charset=utf-8")
    handler.send_header("Cache-Control", "no-store")
    handler.send_header("Content-Length", str(len(body)))
    if persisted is not None:
        handler.send_header("X-Persisted", "true" if persisted else "false")
    handler.end_headers()
    if body:
        handler.wfile.write(body)


def _get_param(query: dict[str, list[str]], key: str) -> str | None:
    values = query.get(key)
    return values[0] if values else None


def _draft_from_payload(payload: Any) -> TransactionDraft:
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return TransactionDraft(
        date=payload.get("date"),
        description=payload.get("description"),
        amount=payload.get("amount"),
        category=payload.get("category"),
        type=payload.get("type", TransactionType.EXPENSE.value),
        vendor=payload.get("vendor"),
        attachment_name=payload.get("attachmentName"),
    )


def _stats_payload(transactions: list[Transaction], config: dict) -> dict:
    stats = compute_stats(transactions, config["total_budget"])
    pct = budget_utilization(stats)
    band, message = utilization_band(pct)
    payload = stats.to_dict()
    payload.update(
        {
            "utilization": pct,
            "band": band,
            "bandMessage": message,
            "overBudget": is_over_budget(stats),
        }
    )
    return payload


class RenovationWebHandler(BaseHTTPRequestHandler):
    repo: TransactionRepository
    config: dict = {}
    lock = threading.Lock()

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    def _read_json(self) -> Any:
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            raise ValidationError("Invalid Content-Length header") from None
        if length < 0:
            raise ValidationError("Invalid Content-Length header")
        raw = self.rfile.read(length) if length else b""
        if not raw:
            return {}
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            raise ValidationError("Request body is not valid JSON") from None

    def _tx_id(self, path: str) -> str | None:
        if path.startswith(_TX_PREFIX) and len(path) > len(_TX_PREFIX):
            return unquote(path[len(_TX_PREFIX):])
        return None

    def _dispatch(self, handler) -> None:
        parsed = urlparse(self.path)
        try:
            handler(parsed)
        except ValidationError as exc:
            _json_response(self, {"error": str(exc)}, status=400)
        except Exception as exc:
            logger.exception("Unhandled error for %s %s", self.command, self.path)
            _json_response(self, {"error": str(exc)}, status=500)

    def do_GET(self) -> None:
        self._dispatch(self._handle_get)

    def do_POST(self) -> None:
        self._dispatch(self._handle_post)

    def do_PUT(self) -> None:
        self._dispatch(self._handle_put)

    def do_DELETE(self) -> None:
        self._dispatch(self._handle_delete)

    def _handle_get(self, parsed) -> None:
        query = parse_qs(parsed.query)
        path = parsed.path

        if path == "/api/metadata":
            payload = {
                "projectName": self.config["project_name"],
                "totalBudget": self.config["total_budget"],
                "currencySymbol": self.config["currency_symbol"],
                "categories": [cat.value for cat in Category],
                "types": [t.value for t in TransactionType],
            }
            _json_response(self, payload)
            return

        with self.lock:
            txs = self.repo.list()

        if path == "/api/transactions":
            try:
                filtered = filter_transactions(
                    txs,
                    search=_get_param(query, "search"),
                    category=_get_param(query, "category"),
                )
            except ValueError:
                raise ValidationError(f"Unknown category: {_get_param(query, 'category')}")
            _json_response(self, [tx.to_dict() for tx in sort_for_display(filtered)])
            return

        tx_id = self._tx_id(path)
        if tx_id is not None:
            match = next((tx for tx in txs if tx.id == tx_id), None)
            if match is None:
                _json_response(self, {"error": "not found"}, status=404)
                return
            _json_response(self, match.to_dict())
            return

        if path == "/api/stats":
            _json_response(self, _stats_payload(txs, self.config))
            return

        if path == "/api/summary/category":
            payload = [
                {"category": cat.value, "total": total}
                for cat, total in aggregate_by_category(txs).items()
            ]
            _json_response(self, payload)
            return

        _json_response(self, {"error": "not found"}, status=404)

    def _handle_post(self, parsed) -> None:
        if parsed.path == "/api/transactions":
            draft = _draft_from_payload(self._read_json())
            with self.lock:
                tx = self.repo.create(draft)
                persisted = self.repo.last_persist_ok
            _json_response(self, tx.to_dict(), status=201, persisted=persisted)
            return

        if parsed.path == "/api/advice":
            with self.lock:
                txs = self.repo.list()
            text = request_advice(
                txs,
                self.config["total_budget"],
                project_name=self.config["project_name"],
                currency_symbol=self.config["currency_symbol"],
                timeout=float(self.config["llm"]["timeout"]),
            )
            _json_response(self, {"advice": text})
            return

        _json_response(self, {"error": "not found"}, status=404)

    def _handle_put(self, parsed) -> None:
        tx_id = self._tx_id(parsed.path)
        if tx_id is None:
            _json_response(self, {"error": "not found"}, status=404)
            return
        draft = _draft_from_payload(self._read_json())
        with self.lock:
            result = self.repo.replace(Transaction.from_draft(draft, tx_id))
            updated = self.repo.get(tx_id)
        if not result.applied:
            _json_response(self, {"error": "not found"}, status=404)
            return
        _json_response(self, updated.to_dict(), persisted=result.persisted)

    def _handle_delete(self, parsed) -> None:
        tx_id = self._tx_id(parsed.path)
        if tx_id is None:
            _json_response(self, {"error": "not found"}, status=404)
            return
        with self.lock:
            result = self.repo.remove(tx_id)
        if not result.applied:
            _json_response(self, {"error": "not found"}, status=404)
            return
        _json_response(self, None, status=204, persisted=result.persisted)


def make_server(config: dict, host: str = "127.0.0.1", port: int = 8000) -> ThreadingHTTPServer:
    handler = type(
        "RenovationWebHandler",
        (RenovationWebHandler,),
        {
            "repo": TransactionRepository(get_store(config), config["store"]["key"]),
            "config": config,
            "lock": threading.Lock(),
        },
    )
    return ThreadingHTTPServer((host, port), handler)


def main() -> None:
    parser = argparse.ArgumentParser(description="Renovation budget JSON API")
    parser.add_argument("--config", dest="config_path", default="config.yaml", help="Path to config.yaml")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind (default: 8000)")
    args = parser.parse_args()

    config = load_config(args.config_path)
    server = make_server(config, args.host, args.port)
    print(f"Renovation budget API running at http://{args.host}:{args.port} (store: {config['store']['path']})")
    server.serve_forever()


if __name__ == "__main__":
    main()
