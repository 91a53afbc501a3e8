"""HTML template for the graph page.

The page always embeds the initial chart configuration. When rendered for
the dashboard (``api_url`` set) the controls refetch the configuration from
the server on change; a static export keeps the controls disabled.
"""

import json
from datetime import datetime, timezone
from html import escape
from typing import Any, Dict, List, Optional

from .constants import (
    CHARTJS_BOXPLOT_CDN_URL,
    CHARTJS_CDN_URL,
    DEFAULT_COLUMNS,
)
from .export import chart_height


def _script_json(value: Any) -> str:
    """JSON safe to inline in a <script> block (no literal '<', so no '</script>')."""
    return json.dumps(value).replace("<", "\\u003c")


def _options(values: List[str], selected: str) -> str:
    return "\n".join(
        f"<option value='{escape(v)}'{' selected' if v == selected else ''}>{escape(v)}</option>"
        for v in values
    )


def render_graph_page(
    config: Dict[str, Any],
    chart_type: str,
    stage: str,
    labels: List[str],
    show_outliers: bool,
    api_url: Optional[str] = None,
    csv_url: Optional[str] = None,
    title: str = "Discourse Performance Tool",
) -> str:
    """Render the complete graph page.

    Args:
        config: Chart.js configuration from export.chart_config()
        chart_type: "boxplot" or "histogram"
        stage: Stage shown in the chart
        labels: Labels shown in the chart
        show_outliers: Whether outliers are shown
        api_url: Chart config endpoint; enables the interactive controls
        csv_url: CSV download endpoint

    Returns:
        Complete HTML string
    """
    now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    disabled = "" if api_url else " disabled"
    height = chart_height(config)

    csv_button = f"<a class='download-csv' href='{escape(csv_url)}'>CSV</a>" if csv_url else ""

    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8"/>
  <title>{escape(title)}</title>
  <script src="{CHARTJS_CDN_URL}"></script>
  <script src="{CHARTJS_BOXPLOT_CDN_URL}"></script>
  <style>
    body {{ font-family: system-ui, -apple-system, sans-serif; margin: 10px; background: white; }}
    .title {{ text-align: center; }}
    .meta {{ color: #666; text-align: center; margin-bottom: 12px; }}
    .controls {{ display: flex; justify-content: center; flex-wrap: wrap; }}
    .controls .control {{ padding: 5px; margin: 5px; border: 1px solid #eee; }}
    .canvas-wrapper {{ margin: 0 auto; width: 800px; max-width: 100%; height: {height}px; }}
  </style>
</head>
<body>

<div class="title"><h1>{escape(title)}</h1></div>
<div class="meta">Generated {escape(now)}</div>

<form class="controls">
  <div class="control">
    <label for="type">Type:</label>
    <select name="type"{disabled}>
      {_options(["boxplot", "histogram"], chart_type)}
    </select>
  </div>
  <div class="control">
    <label for="stage">Stage:</label>
    <select name="stage"{disabled}>
      {_options(list(DEFAULT_COLUMNS), stage)}
    </select>
  </div>
  <div class="control">
    <label for="labels">Runs:</label>
    <input name="labels" value="{escape(','.join(labels))}"{disabled}>
  </div>
  <div class="control">
    <label for="outliers">Outliers:</label>
    <select name="outliers"{disabled}>
      {_options(["show", "hide"], "show" if show_outliers else "hide")}
    </select>
  </div>
  <div class="control">
    {csv_button}
    <button type="button" class="download-png">PNG</button>
  </div>
</form>

<div class="canvas-wrapper">
  <canvas class="perf-tool-graph"></canvas>
</div>

<script>
  const whiteBackground = {{
    id: "custom_canvas_background_color",
    beforeDraw: (chart) => {{
      const ctx = chart.canvas.getContext("2d");
      ctx.save();
      ctx.globalCompositeOperation = "destination-over";
      ctx.fillStyle = "white";
      ctx.fillRect(0, 0, chart.width, chart.height);
      ctx.restore();
    }}
  }};
  const canvas = document.querySelector(".perf-tool-graph");
  const wrapper = document.querySelector(".canvas-wrapper");
  const form = document.querySelector(".controls");
  let chart = null;

  function draw(config) {{
    config.plugins = [whiteBackground];
    if (config.type === "boxplot") {{
      wrapper.style.height = Math.max({height}, config.data.labels.length * 100) + "px";
    }} else {{
      wrapper.style.height = "{height}px";
    }}
    if (chart) chart.destroy();
    chart = new Chart(canvas.getContext("2d"), config);
  }}

  draw({_script_json(config)});

  const apiUrl = {_script_json(api_url)};
  if (apiUrl) {{
    form.addEventListener("change", async () => {{
      const params = new URLSearchParams(new FormData(form));
      const response = await fetch(apiUrl + "?" + params.toString());
      if (response.ok) draw(await response.json());
    }});
  }}

  document.querySelector(".download-png").addEventListener("click", () => {{
    const a = document.createElement("a");
    a.href = chart.toBase64Image();
    a.download = "perf-tool-graph.png";
    a.click();
  }});
</script>

</body>
</html>
"""
