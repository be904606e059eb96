from __future__ import annotations

from .constants import AXES, AXIS_DISPLAY, POLE_DISPLAY
from .models import AssessmentResult, DimensionResult


class ReportBuilder:
    @staticmethod
    def _pole_display(pole: str) -> str:
        label = POLE_DISPLAY.get(pole)
        return f"{pole}（{label}）" if label else pole or "?"

    @staticmethod
    def _clip(text: str, max_chars: int = 240) -> str:
        compact = " ".join(text.strip().split())
        if len(compact) <= max_chars:
            return compact
        return compact[: max_chars - 1].rstrip() + "…"

    def _dimension_line(self, axis: str, dimension: DimensionResult | None) -> str:
        display = AXIS_DISPLAY.get(axis, axis)
        if dimension is None:
            return f"- {display}: 暂无数据"

        line = f"- {display}: {self._pole_display(dimension.pole)}，置信度 {dimension.confidence:.0%}"
        if dimension.reason:
            line += f"\n  {self._clip(dimension.reason)}"
        return line

    @staticmethod
    def _bullets(items: tuple[str, ...], empty: str) -> list[str]:
        if not items:
            return [f"- {empty}"]
        return [f"- {item}" for item in items]

    def build_markdown(self, analysis: AssessmentResult) -> str:
        lines: list[str] = []
        lines.append(f"## 你的MBTI类型：{analysis.mbti_type or '未知'}")
        lines.append(f"**整体置信度:** {analysis.confidence:.0%}")
        lines.append("")

        if analysis.description:
            lines.append(analysis.description)
            lines.append("")

        lines.append("### 维度分析")
        for axis in AXES:
            lines.append(self._dimension_line(axis, analysis.dimensions.get(axis)))
        lines.append("")

        lines.append("### 优势")
        lines.extend(self._bullets(analysis.strengths, "暂无"))
        lines.append("")

        lines.append("### 发展建议")
        lines.extend(self._bullets(analysis.development_areas, "暂无"))
        lines.append("")

        lines.append("### 职业建议")
        lines.extend(self._bullets(analysis.career_suggestions, "暂无"))
        lines.append("")

        lines.append("_发送 /reset 可以重新开始测评。_")
        return "\n".join(lines).strip()
