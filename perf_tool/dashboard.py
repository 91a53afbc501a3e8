#!/usr/bin/env python3
"""
Page Performance Tool Dashboard - Flask Backend
Serves the graph UI, chart configurations and CSV export for a store file
"""

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

import os
from typing import Any, Dict, List, Optional

from .constants import (
    CSV_FILENAME,
    DEFAULT_COLUMNS,
    DEFAULT_GRAPH_STAGE,
    DEFAULT_STORE_PATH,
)
from .export import chart_config, to_csv
from .html_template import render_graph_page
from .store import JsonFileStore, StoreBackend
from .summary import summarize

app = Flask(__name__)
CORS(app)

# Configuration
app.config.setdefault("PERF_TOOL_STORE", os.getenv("PERF_TOOL_STORE", DEFAULT_STORE_PATH))


def _store() -> StoreBackend:
    store = app.config["PERF_TOOL_STORE"]
    if isinstance(store, StoreBackend):
        return store
    return JsonFileStore(store)


def _chart_params(params) -> Dict[str, Any]:
    """Read chart options from query string or JSON body values."""
    labels = params.get("labels")
    if isinstance(labels, str):
        labels = [label.strip() for label in labels.split(",") if label.strip()]
    return {
        "chart_type": params.get("type", "boxplot"),
        "stage": params.get("stage", DEFAULT_GRAPH_STAGE),
        "labels": labels or None,
        "show_outliers": params.get("outliers", "show") != "hide",
    }


def _error(message: str, status: int = 400):
    return jsonify({"error": message}), status


@app.route('/')
def index():
    data = _store().load().data
    params = _chart_params(request.args)
    labels: Optional[List[str]] = params["labels"] or list(data.keys())
    try:
        config = chart_config(data, params["chart_type"], params["stage"], labels, params["show_outliers"])
    except ValueError as e:
        return _error(str(e))
    html = render_graph_page(
        config,
        params["chart_type"],
        params["stage"],
        labels,
        params["show_outliers"],
        api_url="/api/chart",
        csv_url="/api/csv",
    )
    return Response(html, mimetype="text/html")


@app.route('/api/health')
def health():
    snapshot = _store().load()
    return jsonify({
        "status": "ok",
        "labels": len(snapshot.data),
        "run_in_progress": snapshot.label,
    })


@app.route('/api/summary')
def summary():
    rows = summarize(_store().load().data)
    return jsonify({
        "columns": DEFAULT_COLUMNS,
        "rows": [
            {
                "label": row.label,
                "iterations": row.iterations,
                "stages": {
                    stage: {"median": median, "mad": mad}
                    for stage, (median, mad) in row.stages.items()
                },
            }
            for row in rows
        ],
    })


@app.route('/api/chart', methods=['GET', 'POST'])
def chart():
    if request.method == 'POST':
        params = _chart_params(request.get_json(silent=True) or {})
    else:
        params = _chart_params(request.args)
    try:
        config = chart_config(
            _store().load().data,
            params["chart_type"],
            params["stage"],
            params["labels"],
            params["show_outliers"],
        )
    except ValueError as e:
        return _error(str(e))
    return jsonify(config)


@app.route('/api/csv')
def csv_export():
    text = to_csv(_store().load().data)
    return Response(
        text,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={CSV_FILENAME}"},
    )


def main():
    port = int(os.getenv("PORT", "5000"))
    print(f"📊 Serving {app.config['PERF_TOOL_STORE']} on http://localhost:{port}")
    app.run(host="0.0.0.0", port=port, debug=False)


if __name__ == '__main__':
    main()
