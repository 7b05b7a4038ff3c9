"""
Report Renderer — turns an ImpactAnalysisReport into a standalone HTML page.
"""

from __future__ import annotations

from html import escape

from policy_impact.models.schemas import ImpactAnalysisReport

_STYLE = """
    body { font-family: Arial, sans-serif; margin: 20px; }
    h1 { color: #333; }
    .risk-critical { color: red; font-weight: bold; }
    .risk-high { color: orange; font-weight: bold; }
    .risk-medium { color: #ff9900; }
    .risk-low { color: green; }
"""


def _list_items(values: list[str]) -> str:
    return "".join(f"<li>{escape(v)}</li>" for v in values)


def render_html_report(report: ImpactAnalysisReport) -> str:
    """Fixed template: title, risk level/score, affected workflows, mitigation."""
    risk = report.risk_assessment
    level = risk.risk_level.value
    workflows = [f"{wf.name} ({wf.risk_level.value})" for wf in report.affected_workflows.workflows]

    return f"""<!DOCTYPE html>
<html>
  <head>
    <title>Policy Impact Analysis Report</title>
    <style>{_STYLE}</style>
  </head>
  <body>
    <h1>Policy Impact Analysis Report</h1>
    <p><strong>Policy:</strong> {escape(report.policy.title)}</p>
    <p><strong>Analyzed At:</strong> {report.analyzed_at.isoformat()}</p>
    <p><strong>Risk Level:</strong> <span class="risk-{level}">{level.upper()}</span></p>
    <p><strong>Risk Score:</strong> {risk.overall_risk_score}/100</p>
    <p><strong>Total Affected:</strong> {report.change_scope.total_affected} entities</p>

    <h2>Affected Workflows: {report.affected_workflows.total_count}</h2>
    <ul>{_list_items(workflows)}</ul>

    <h2>Mitigation Recommendations</h2>
    <ul>{_list_items(risk.mitigation_recommendations)}</ul>
  </body>
</html>
"""
