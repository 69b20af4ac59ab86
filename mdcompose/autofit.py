"""
Auto-fit scaling for display math that overflows its column.

Measurement has to happen in the mounted page, so the host runs a
measure -> plan -> apply round trip through `runJavaScript`: the measure
script clears earlier transforms and reports widths, `AutoFitScaler.plan`
decides the shrink factors, and the apply script writes them back.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

MATH_BLOCK_SELECTOR = ".math-display"
# Widths within this many px are treated as fitting (sub-pixel rounding).
FIT_TOLERANCE_PX = 0.5


@dataclass(frozen=True)
class MathMeasurement:
    index: int
    natural_width: float
    container_width: float


@dataclass(frozen=True)
class FitTransform:
    index: int
    scale: float

    @property
    def css_transform(self) -> str:
        return f"scale({self.scale:.4f})"


def fit_scale(natural_width: float, container_width: float) -> float | None:
    """Uniform shrink factor for an overflowing block, or None if it fits."""
    if natural_width <= 0 or container_width <= 0:
        return None
    if natural_width <= container_width + FIT_TOLERANCE_PX:
        return None
    return container_width / natural_width


def parse_measurements(result) -> list[MathMeasurement]:
    """Coerce the measure script's JS result into measurements, skipping junk."""
    measurements: list[MathMeasurement] = []
    if not isinstance(result, list):
        return measurements
    for item in result:
        if not isinstance(item, dict):
            continue
        try:
            measurements.append(
                MathMeasurement(
                    index=int(item["index"]),
                    natural_width=float(item["natural"]),
                    container_width=float(item["container"]),
                )
            )
        except (KeyError, TypeError, ValueError):
            continue
    return measurements


class AutoFitScaler:
    """Plans per-block scale transforms and remembers what was applied."""

    def __init__(self, selector: str = MATH_BLOCK_SELECTOR) -> None:
        self.selector = selector
        self.applied: dict[int, float] = {}

    def reset(self) -> None:
        self.applied = {}

    def plan(self, measurements: list[MathMeasurement]) -> list[FitTransform]:
        # Measurements are taken after the reset, so earlier scales never
        # compound into the new plan.
        self.reset()
        transforms = []
        for measurement in measurements:
            scale = fit_scale(measurement.natural_width, measurement.container_width)
            if scale is None:
                continue
            transforms.append(FitTransform(index=measurement.index, scale=scale))
            self.applied[measurement.index] = scale
        return transforms

    def measure_script(self) -> str:
        selector_json = json.dumps(self.selector)
        return f"""
(() => {{
  const blocks = Array.from(document.querySelectorAll({selector_json}));
  const out = [];
  blocks.forEach((block, index) => {{
    block.style.transform = "";
    block.style.transformOrigin = "";
    block.style.overflow = "";
    block.style.width = "";
    block.style.marginInline = "";
    // An auto-width block fills its column, so its client width is the
    // container's content width even in multi-column layouts.
    out.push({{
      index: index,
      natural: block.scrollWidth,
      container: block.clientWidth,
    }});
  }});
  return out;
}})();
"""

    def apply_script(self, transforms: list[FitTransform]) -> str:
        plan_json = json.dumps({str(t.index): t.css_transform for t in transforms})
        selector_json = json.dumps(self.selector)
        return f"""
(() => {{
  const plan = {plan_json};
  const blocks = Array.from(document.querySelectorAll({selector_json}));
  blocks.forEach((block, index) => {{
    const transform = plan[String(index)];
    if (!transform) {{
      return;
    }}
    // Widen the box to its natural width, centered on the column, so the
    // center-anchored scale lands exactly inside the column.
    const natural = block.scrollWidth;
    block.style.width = `${{natural}}px`;
    block.style.marginInline = `calc((100% - ${{natural}}px) / 2)`;
    block.style.transformOrigin = "center top";
    block.style.transform = transform;
    block.style.overflow = "hidden";
  }});
  return Object.keys(plan).length;
}})();
"""
