# report.py
"""
Standalone HTML report: top products, decomposition, forecast vs actual and accuracy.
Figures are embedded as base64 PNG so the file can be shared on its own.
"""

import base64
import html
import os
from datetime import datetime

import pandas as pd


def png_to_base64(path: str) -> str:
    with open(path, "rb") as f:
        return base64.b64encode(f.read()).decode("ascii")


def _metrics_table(metrics: dict) -> str:
    labels = {
        "mae": "MAE",
        "rmse": "RMSE",
        "mape_pct": "MAPE (%)",
    }
    rows = []
    for key, value in metrics.items():
        if key.startswith("coverage_"):
            name = f"{key.split('_', 1)[1]}% interval coverage"
            shown = f"{value:.1%}" if pd.notna(value) else "n/a"
        else:
            name = labels.get(key, key)
            shown = f"{value:,.2f}" if pd.notna(value) else "n/a"
        rows.append({"Metric": name, "Value": shown})
    return pd.DataFrame(rows).to_html(index=False, border=0)


def render_report(
    path: str,
    article: str,
    top: pd.DataFrame,
    decomposition_png: str,
    forecast_png: str,
    metrics: dict,
    model_label: str,
    train_range: tuple,
    test_range: tuple,
) -> str:
    """Write the HTML document to path and return path."""
    top_html = top.rename(columns={"article": "Article", "quantity": "Quantity"}).to_html(
        index=False,
        border=0,
        float_format=lambda x: f"{x:,.0f}",
    )
    decomposition_b64 = png_to_base64(decomposition_png)
    forecast_b64 = png_to_base64(forecast_png)
    name = html.escape(article)

    report_html = f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8"/>
<title>Demand forecast: {name}</title>
<style>
 body {{ font-family: Arial, sans-serif; margin: 20px; max-width: 1100px; }}
 h1, h2 {{ color: #222; }}
 .card {{ border: 1px solid #ddd; padding: 16px; border-radius: 8px; margin-bottom: 16px; }}
 table {{ border-collapse: collapse; }}
 th, td {{ border: 1px solid #ddd; padding: 6px 10px; text-align: left; }}
 th {{ background: #f4f4f4; }}
 small {{ color: #555; }}
</style>
</head>
<body>

<h1>Demand forecast: {name}</h1>
<div class="card">
  <p><b>Training window:</b> {train_range[0]:%Y-%m-%d} to {train_range[1]:%Y-%m-%d}<br/>
     <b>Test window:</b> {test_range[0]:%Y-%m-%d} to {test_range[1]:%Y-%m-%d}<br/>
     <b>Generated on:</b> {datetime.now().strftime("%Y-%m-%d %H:%M:%S")}
  </p>
</div>

<h2>Top products</h2>
<div class="card">
  {top_html}
</div>

<h2>Decomposition</h2>
<div class="card">
  <img alt="decomposition" src="data:image/png;base64,{decomposition_b64}" style="max-width:100%; height:auto;"/>
  <p><small>Robust STL on the gap-filled daily series. Diagnostic only, not used by the model.</small></p>
</div>

<h2>Forecast vs actual</h2>
<div class="card">
  <img alt="forecast" src="data:image/png;base64,{forecast_b64}" style="max-width:100%; height:auto;"/>
  <p>The model, {html.escape(model_label)}, was fitted on the training window and forecast the
     test window using the observed weather. On the test window the forecast is off by
     <b>{metrics["mae"]:.2f}</b> units per day on average (mean absolute error).</p>
  {_metrics_table(metrics)}
</div>

</body>
</html>
"""
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(report_html)
    return path
