"""HTML calibration report.

Produces a standalone HTML report for a project's coordinate settings and its
calibration points.
"""

from __future__ import annotations

import html
from typing import List, Optional, Sequence

from ..models.calibration_point import CalibrationPoint
from ..models.settings import ProjectCoordinateSettings
from ..solver.geometry import haversine_distance


def _fmt(value: Optional[float], digits: int = 3) -> str:
    return f"{value:.{digits}f}" if value is not None else "-"


def _ordered(points: Sequence[CalibrationPoint]) -> List[CalibrationPoint]:
    return sorted(points, key=lambda p: (p.created_at or "", p.id))


def render_html_report(
    settings: ProjectCoordinateSettings,
    points: Sequence[CalibrationPoint],
    title: str | None = None,
) -> str:
    """Render calibration settings and points as a standalone HTML document.

    Distances are great-circle distances from the transform's geographic
    anchor, or from the first active point when there is no transform.
    Inactive points are listed but marked.
    """
    if title is None:
        title = f"Site Calibration Report: {settings.project_id}"

    def esc(s: object) -> str:
        return html.escape(str(s))

    css = """
    body { font-family: Arial, sans-serif; margin: 24px; }
    h1 { margin-bottom: 4px; }
    .meta { color: #555; margin-bottom: 16px; }
    table { border-collapse: collapse; width: 100%; margin: 12px 0 24px 0; }
    th, td { border: 1px solid #ddd; padding: 6px 8px; font-size: 13px; }
    th { background: #f5f5f5; text-align: left; }
    .ok { color: #067d00; font-weight: bold; }
    .bad { color: #b00020; font-weight: bold; }
    .inactive { color: #999; background: #fafafa; }
    .small { font-size: 12px; color: #666; }
    """

    ordered = _ordered(points)
    active = [p for p in ordered if p.is_active]
    if settings.transform is not None:
        anchor = settings.transform.origin_geographic
    elif active:
        anchor = (active[0].latitude, active[0].longitude)
    else:
        anchor = None

    parts: list[str] = []
    parts.append("<!doctype html>")
    parts.append("<html><head><meta charset='utf-8'>")
    parts.append(f"<title>{esc(title)}</title>")
    parts.append(f"<style>{css}</style>")
    parts.append("</head><body>")

    parts.append(f"<h1>{esc(title)}</h1>")
    status_cls = "ok" if settings.is_calibrated else "bad"
    parts.append(
        f"<div class='meta'>Status: <span class='{status_cls}'>{esc(settings.calibration_status.value)}</span> | "
        f"CRS: {esc(settings.coordinate_system_id)} ({esc(settings.country_code)}) | "
        f"Model units: {esc(settings.model_units.value)} | "
        f"Points: {len(active)} active / {len(ordered)} total</div>"
    )

    if settings.model_has_real_coordinates:
        parts.append("<p>Model is in real-world coordinates; no calibration transform is used.</p>")

    t = settings.transform
    if t is not None:
        parts.append("<h2>Transform</h2>")
        parts.append(
            "<table><thead><tr><th>tx (m)</th><th>ty (m)</th><th>Rotation (deg)</th>"
            "<th>Scale</th><th>Computed</th></tr></thead><tbody>"
        )
        parts.append(
            "<tr>"
            f"<td>{t.tx:.3f}</td><td>{t.ty:.3f}</td>"
            f"<td>{t.rotation_degrees:.6f}</td><td>{t.scale:.8f}</td>"
            f"<td>{esc(t.computed_at)}</td>"
            "</tr>"
        )
        parts.append("</tbody></table>")

        parts.append("<h2>Quality</h2>")
        quality = settings.quality.value if settings.quality else "-"
        parts.append(
            "<table><thead><tr><th>RMSE (m)</th><th>Max error (m)</th><th>Quality</th>"
            "<th>Points used</th><th>Calibrated at</th><th>By</th></tr></thead><tbody>"
        )
        parts.append(
            "<tr>"
            f"<td>{_fmt(settings.rmse_m)}</td><td>{_fmt(settings.max_error_m)}</td>"
            f"<td>{esc(quality)}</td><td>{esc(settings.calibration_points_count)}</td>"
            f"<td>{esc(settings.calibrated_at or '-')}</td>"
            f"<td>{esc(settings.calibrated_by_name or '-')}</td>"
            "</tr>"
        )
        parts.append("</tbody></table>")

    parts.append("<h2>Calibration Points</h2>")
    parts.append(
        "<table><thead><tr>"
        "<th>ID</th><th>Name</th><th>Model X</th><th>Model Y</th>"
        "<th>Latitude</th><th>Longitude</th><th>GPS acc. (m)</th>"
        "<th>Error (m)</th><th>From anchor (m)</th><th>Active</th>"
        "</tr></thead><tbody>"
    )
    for p in ordered:
        cls = "" if p.is_active else "inactive"
        distance = None
        if anchor is not None:
            distance = haversine_distance(anchor[0], anchor[1], p.latitude, p.longitude)
        parts.append(
            f"<tr class='{cls}'>"
            f"<td>{esc(p.id)}</td><td>{esc(p.name)}</td>"
            f"<td>{p.model_x:.3f}</td><td>{p.model_y:.3f}</td>"
            f"<td>{p.latitude:.8f}</td><td>{p.longitude:.8f}</td>"
            f"<td>{_fmt(p.accuracy_m)}</td><td>{_fmt(p.error_m)}</td>"
            f"<td>{_fmt(distance, 2)}</td>"
            f"<td>{'Yes' if p.is_active else 'No'}</td>"
            "</tr>"
        )
    parts.append("</tbody></table>")

    parts.append(f"<div class='small'>Last updated {esc(settings.updated_at)}</div>")
    parts.append("</body></html>")
    return "\n".join(parts)


def save_html_report(
    path: str,
    settings: ProjectCoordinateSettings,
    points: Sequence[CalibrationPoint],
    title: str | None = None,
) -> None:
    """Write an HTML report to disk."""
    html_str = render_html_report(settings, points, title=title)
    with open(path, "w", encoding="utf-8") as f:
        f.write(html_str)
