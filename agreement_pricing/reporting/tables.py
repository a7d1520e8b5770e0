from __future__ import annotations

from typing import Any, Dict, Iterable, List

from ..pricing.changes import field_display_name


def _md_escape(v: Any) -> str:
    s = "" if v is None else str(v)
    # Escape pipes so Markdown tables don't break
    return s.replace("|", "\\|").replace("\n", " ").strip()


def _money(v: Any) -> str:
    if v is None or isinstance(v, bool):
        return ""
    try:
        f = float(v)
    except (TypeError, ValueError):
        return ""
    return f"{f:,.2f}"


def _percent(v: Any) -> str:
    if v is None:
        return "-"
    return f"{float(v):+.2f}%"


def render_breakdown_table(service: Dict[str, Any]) -> str:
    """Component lines of one service, followed by its billing totals."""
    rows: List[str] = [
        "| Line | Amount |",
        "|---|---:|",
    ]
    for key, amount in (service.get("breakdown") or {}).items():
        if not amount:
            continue
        rows.append(f"| {_md_escape(field_display_name(key))} | {_money(amount)} |")
    rows.append(f"| **Per visit** | {_money(service.get('perVisitPrice'))} |")
    if service.get("installationFee"):
        rows.append(f"| Installation | {_money(service.get('installationFee'))} |")
    rows.append(f"| First month | {_money(service.get('firstMonthTotal'))} |")
    rows.append(f"| Contract total | {_money(service.get('contractTotal'))} |")
    return "\n".join(rows)


def render_service_sections(proposal: Dict[str, Any]) -> str:
    out: List[str] = []
    for service in proposal.get("services", []) or []:
        label = service.get("displayName") or service.get("serviceId") or "-"
        out.append(f"### {_md_escape(label)} (`{_md_escape(service.get('serviceId'))}`)")
        out.append("")
        out.append(render_breakdown_table(service))
        notes = [n for n in service.get("detailsBreakdown") or [] if n]
        if notes:
            out.append("")
            out.extend(f"- {_md_escape(n)}" for n in notes)
        if service.get("usingDefaults"):
            out.append("")
            out.append("_Priced with default rates (service config unavailable)._")
        out.append("")
    return "\n".join(out).strip()


def render_change_table(entries: Iterable[Dict[str, Any]]) -> str:
    rows: List[str] = [
        "| Service | Field | Original | New | Change | Change % |",
        "|---|---|---:|---:|---:|---:|",
    ]
    for e in entries:
        rows.append(
            "| "
            + " | ".join(
                [
                    _md_escape(e.get("serviceId")),
                    _md_escape(e.get("fieldDisplayName") or e.get("fieldKey")),
                    _money(e.get("originalValue")),
                    _money(e.get("newValue")),
                    _money(e.get("changeAmount")),
                    _percent(e.get("changePercentage")),
                ]
            )
            + " |"
        )
    return "\n".join(rows)
