"""Smoke test para el servidor HTTP del watchdog."""

from __future__ import annotations

import json
import sys
import threading
import time
import urllib.request
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from kernel_watchdog.web.server import create_app


def fetch_json(url: str, method: str = "GET") -> object:
    request = urllib.request.Request(url, method=method)
    with urllib.request.urlopen(request) as response:  # nosec - uso local en smoke test
        payload = response.read().decode("utf-8")
    return json.loads(payload)


def run_smoke() -> None:
    server = create_app(port=0)
    address = server.server_address()
    print(f"Iniciando servidor en {address}")

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        time.sleep(2.0)  # al menos dos muestras del colector
        current = fetch_json(f"{address}/api/current")
        history = fetch_json(f"{address}/api/history")
        scan = fetch_json(f"{address}/api/scan", method="POST")
        alerts = fetch_json(f"{address}/api/alerts")
        assert isinstance(current, dict) and "cpu" in current, "Snapshot sin datos de CPU"
        assert "memory" in current, "Snapshot sin datos de memoria"
        assert isinstance(history, dict) and "cpu" in history, "Histórico sin serie de CPU"
        assert isinstance(scan, dict) and "admitted" in scan, "Escaneo sin resultado"
        print("SMOKE_OK", {
            "cpu_usage": current["cpu"]["usage_percent"],
            "history_points": len(history["cpu"]),
            "alerts": len(alerts) if isinstance(alerts, list) else 0,
        })
    finally:
        server.shutdown()
        thread.join()


if __name__ == "__main__":
    run_smoke()
