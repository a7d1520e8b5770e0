from typing import Any, Dict, List, Optional

from .tables import _md_escape, render_change_table, render_service_sections


def _format_currency(value: Optional[float], currency: str) -> str:
    if value is None:
        return "-"
    return f"{value:,.2f} {currency}"


def _format_months(months: Any, visits: Any) -> str:
    if visits:
        return f"{months} ({visits} visits)"
    return str(months)


def render_totals_table(proposal: Dict) -> str:
    currency = proposal.get("metadata", {}).get("currency", "USD")
    rows = [
        "| Service | Frequency | Months | Per visit | Monthly | First month | Contract total |",
        "|---|---|---|---|---|---|---|",
    ]
    for service in proposal.get("services", []):
        rows.append(
            "| {name} | {freq} | {months} | {pv} | {mr} | {fm} | {ct} |".format(
                name=_md_escape(service.get("displayName") or service.get("serviceId") or "-"),
                freq=service.get("frequency") or "-",
                months=_format_months(service.get("contractMonths"), service.get("totalVisits")),
                pv=_format_currency(service.get("perVisitPrice"), currency),
                mr=_format_currency(service.get("monthlyRecurring"), currency),
                fm=_format_currency(service.get("firstMonthTotal"), currency),
                ct=_format_currency(service.get("contractTotal"), currency),
            )
        )
    totals = proposal.get("totals") or {}
    if totals:
        rows.append(
            "| **Total** | | | {pv} | {mr} | {fm} | {ct} |".format(
                pv=_format_currency(totals.get("perVisit", 0.0), currency),
                mr=_format_currency(totals.get("monthlyRecurring", 0.0), currency),
                fm=_format_currency(totals.get("firstMonthTotal", 0.0), currency),
                ct=_format_currency(totals.get("contractTotal", 0.0), currency),
            )
        )
    return "\n".join(rows)


def render_report(proposal: Dict, changes: Optional[List[Dict[str, Any]]] = None) -> str:
    services = proposal.get("services", [])
    if not services:
        return ""

    months = proposal.get("metadata", {}).get("globalContractMonths")
    sections: List[str] = ["## Agreement totals"]
    if months:
        sections.append(f"Global contract length: {months} months")
        sections.append("")
    sections.append(render_totals_table(proposal))
    sections.append("")
    sections.append("## Service breakdown")
    sections.append(render_service_sections(proposal))

    if changes:
        sections.append("")
        sections.append("## Price changes")
        sections.append(render_change_table(changes))

    return "\n".join(sections).strip()
