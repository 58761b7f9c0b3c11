"""Render a viewer scene to SVG, standalone HTML or JSON."""

from __future__ import annotations

import html
import json
from typing import Any, Mapping

from .interaction.styles import PULSE_HIGH, PULSE_LOW, PULSE_PERIOD
from .interaction.viewer import Scene
from .interaction.viewport import SCALE_MAX, SCALE_MIN

BACKGROUND = "#0f172a"
TEXT_COLOR = "#e2e8f0"
LEGEND_BORDER = "#334155"


def _esc(s: str) -> str:
    return html.escape(s, quote=True)


def _markers(layer_colors: Mapping[int, str]) -> list[str]:
    parts = ["<defs>"]
    for layer, color in sorted(layer_colors.items()):
        parts.append(
            f'<marker id="arrow-{layer}" viewBox="0 -5 10 10" refX="20" refY="0" '
            f'markerWidth="6" markerHeight="6" orient="auto">'
            f'<path d="M0,-5L10,0L0,5" fill="{color}"/></marker>'
        )
    parts.append("</defs>")
    return parts


def to_svg(
    scene: Scene,
    *,
    title: str,
    layer_names: Mapping[int, str] | None = None,
    layer_colors: Mapping[int, str] | None = None,
) -> str:
    """Render nodes and links at their simulated positions.

    The viewport transform is applied to a single ``<g>`` so that the HTML
    wrapper can pan and zoom by rewriting the SVG viewBox.
    """
    layer_colors = layer_colors or {}
    layer_names = layer_names or {}
    width, height = scene.width, scene.height

    parts: list[str] = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width:.0f}" height="{height:.0f}" '
        f'viewBox="0 0 {width:.0f} {height:.0f}" style="background:{BACKGROUND}">'
    ]
    parts.extend(_markers(layer_colors))
    parts.append(
        f'<text x="20" y="28" fill="{TEXT_COLOR}" font-family="Helvetica" font-size="16">{_esc(title)}</text>'
    )

    # Legend
    lx, ly = 20, height - 20
    for i, (layer, color) in enumerate(sorted(layer_colors.items())):
        x = lx + i * 120
        label = layer_names.get(layer, f"Layer {layer}")
        parts.append(f'<rect x="{x}" y="{ly - 10}" width="10" height="10" fill="{color}" stroke="{LEGEND_BORDER}"/>')
        parts.append(
            f'<text x="{x + 14}" y="{ly}" fill="{TEXT_COLOR}" font-family="Helvetica" font-size="11">{_esc(label)}</text>'
        )

    parts.append(f'<g id="scene" transform="{scene.transform}">')

    # Links under nodes
    parts.append('<g id="links" stroke-linecap="round" fill="none">')
    for link in scene.links:
        s = link.style
        marker = f' marker-end="url(#arrow-{s.marker_layer})"' if s.marker_layer in layer_colors else ""
        attrs = (
            f'data-id="{_esc(link.id)}" x1="{link.x1:.1f}" y1="{link.y1:.1f}" x2="{link.x2:.1f}" y2="{link.y2:.1f}" '
            f'stroke="{s.stroke}" stroke-width="{s.width:.2f}" stroke-dasharray="{s.dash}" opacity="{s.opacity:.2f}"{marker}'
        )
        if s.emphasized:
            parts.append(
                f'<line {attrs}><animate attributeName="opacity" '
                f'values="{PULSE_HIGH};{PULSE_LOW};{PULSE_HIGH}" dur="{PULSE_PERIOD:g}s" repeatCount="indefinite"/></line>'
            )
        else:
            parts.append(f"<line {attrs}/>")
    parts.append("</g>")

    parts.append('<g id="nodes">')
    for node in scene.nodes:
        s = node.style
        parts.append(
            f'<circle data-id="{_esc(node.id)}" data-layer="{node.layer}" cx="{node.x:.1f}" cy="{node.y:.1f}" '
            f'r="{s.radius:.1f}" fill="{s.fill}" stroke="{s.stroke}" stroke-width="{s.stroke_width:g}" '
            f'stroke-opacity="{s.stroke_opacity:g}" opacity="{s.opacity:g}"/>'
        )
        if node.decorative:
            continue
        parts.append(
            f'<text x="{node.x:.1f}" y="{(node.y + s.radius + 12):.1f}" fill="{TEXT_COLOR}" '
            f'font-family="Helvetica" font-size="10" text-anchor="middle">{_esc(node.label)}</text>'
        )
    parts.append("</g>")

    parts.append("</g>")
    parts.append("</svg>")
    return "\n".join(parts) + "\n"


def to_html(svg: str, *, title: str) -> str:
    """Wrap SVG in a standalone HTML page with pan/zoom."""
    t = _esc(title)
    min_w = 1 / SCALE_MAX
    max_w = 1 / SCALE_MIN
    return (
        "<!doctype html>\n"
        "<html>\n"
        "<head>\n"
        f"  <meta charset=\"utf-8\" />\n  <title>{t}</title>\n"
        "  <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />\n"
        "  <style>\n"
        "    html, body { height: 100%; }\n"
        f"    body {{ margin: 0; background: {BACKGROUND}; color: {TEXT_COLOR}; font-family: system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial; }}\n"
        "    .wrap { padding: 12px; height: 100vh; box-sizing: border-box; display: flex; flex-direction: column; }\n"
        "    .toolbar { display: flex; gap: 8px; align-items: center; margin: 0 0 10px 0; }\n"
        "    .btn { background: #1e293b; color: #e2e8f0; border: 1px solid #334155; border-radius: 8px; padding: 6px 10px; cursor: pointer; }\n"
        "    .btn:hover { border-color: #64748b; }\n"
        "    .hint { color: #94a3b8; font-size: 12px; }\n"
        "    .viewport { border: 1px solid #334155; border-radius: 10px; overflow: hidden; flex: 1; min-height: 0; }\n"
        "    svg { width: 100%; height: 100%; display: block; touch-action: none; user-select: none; }\n"
        "  </style>\n"
        "</head>\n"
        "<body>\n"
        "  <div class=\"wrap\">\n"
        "    <div class=\"toolbar\">\n"
        "      <button class=\"btn\" id=\"resetBtn\" type=\"button\">Reset</button>\n"
        "      <button class=\"btn\" id=\"zoomInBtn\" type=\"button\">Zoom +</button>\n"
        "      <button class=\"btn\" id=\"zoomOutBtn\" type=\"button\">Zoom -</button>\n"
        "      <span class=\"hint\">Drag to pan • Scroll to zoom</span>\n"
        "    </div>\n"
        "    <div class=\"viewport\" id=\"viewport\">\n"
        f"{svg}\n"
        "    </div>\n"
        "  </div>\n"
        "  <script>\n"
        "    (function () {\n"
        "      const svg = document.getElementById('viewport').querySelector('svg');\n"
        "      if (!svg) return;\n"
        "      const vb = svg.viewBox.baseVal;\n"
        "      const initial = { x: vb.x, y: vb.y, width: vb.width, height: vb.height };\n"
        f"      const minW = initial.width * {min_w:.4f};\n"
        f"      const maxW = initial.width * {max_w:.4f};\n"
        "      const clamp = (v, min, max) => Math.max(min, Math.min(max, v));\n"
        "\n"
        "      const zoomAt = (px, py, factor) => {\n"
        "        const newW = clamp(vb.width / factor, minW, maxW);\n"
        "        const newH = newW * (initial.height / initial.width);\n"
        "        vb.x += (vb.width - newW) * px;\n"
        "        vb.y += (vb.height - newH) * py;\n"
        "        vb.width = newW;\n"
        "        vb.height = newH;\n"
        "      };\n"
        "\n"
        "      let isPanning = false;\n"
        "      let start = { x: 0, y: 0, vbX: 0, vbY: 0 };\n"
        "      svg.addEventListener('pointerdown', (e) => {\n"
        "        isPanning = true;\n"
        "        svg.setPointerCapture(e.pointerId);\n"
        "        start = { x: e.clientX, y: e.clientY, vbX: vb.x, vbY: vb.y };\n"
        "      });\n"
        "      svg.addEventListener('pointerup', () => { isPanning = false; });\n"
        "      svg.addEventListener('pointercancel', () => { isPanning = false; });\n"
        "      svg.addEventListener('pointermove', (e) => {\n"
        "        if (!isPanning) return;\n"
        "        const rect = svg.getBoundingClientRect();\n"
        "        vb.x = start.vbX - (e.clientX - start.x) * (vb.width / rect.width);\n"
        "        vb.y = start.vbY - (e.clientY - start.y) * (vb.height / rect.height);\n"
        "      });\n"
        "      svg.addEventListener('wheel', (e) => {\n"
        "        e.preventDefault();\n"
        "        const rect = svg.getBoundingClientRect();\n"
        "        const factor = e.deltaY > 0 ? 1 / 1.15 : 1.15;\n"
        "        zoomAt((e.clientX - rect.left) / rect.width, (e.clientY - rect.top) / rect.height, factor);\n"
        "      }, { passive: false });\n"
        "\n"
        "      document.getElementById('resetBtn').addEventListener('click', () => {\n"
        "        vb.x = initial.x; vb.y = initial.y; vb.width = initial.width; vb.height = initial.height;\n"
        "      });\n"
        "      document.getElementById('zoomInBtn').addEventListener('click', () => zoomAt(0.5, 0.5, 1.15));\n"
        "      document.getElementById('zoomOutBtn').addEventListener('click', () => zoomAt(0.5, 0.5, 1 / 1.15));\n"
        "    })();\n"
        "  </script>\n"
        "</body>\n"
        "</html>\n"
    )


def to_json(scene: Scene) -> str:
    payload: dict[str, Any] = {
        "width": scene.width,
        "height": scene.height,
        "nodes": [
            {
                "id": n.id,
                "layer": n.layer,
                "x": round(n.x, 2),
                "y": round(n.y, 2),
                "radius": n.style.radius,
                "fill": n.style.fill,
                "decorative": n.decorative,
            }
            for n in scene.nodes
        ],
        "links": [
            {
                "id": l.id,
                "stroke": l.style.stroke,
                "width": round(l.style.width, 3),
                "opacity": l.style.opacity,
                "emphasized": l.style.emphasized,
            }
            for l in scene.links
        ],
    }
    return json.dumps(payload, ensure_ascii=False, indent=2) + "\n"
