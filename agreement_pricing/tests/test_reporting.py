from agreement_pricing.reporting.format import render_report, render_totals_table
from agreement_pricing.reporting.tables import render_breakdown_table, render_change_table
from agreement_pricing.session import ProposalSession


def _proposal():
    proposal = ProposalSession(global_contract_months=12)
    proposal.add_service({"service_id": "saniclean", "inputs": {"sinks": 6, "urinals": 4, "pricing_mode": "perItem"}})
    proposal.add_service({"service_id": "stripWax", "inputs": {"floor_area_sqft": 1000}})
    return proposal


def test_totals_table_has_one_row_per_service_and_a_total():
    table = render_totals_table(_proposal().to_dict(currency="USD"))
    lines = table.splitlines()
    assert lines[0].startswith("| Service | Frequency |")
    assert "| SaniClean | weekly | 12 | 78.00 USD |" in table
    assert "| Strip & Wax | oneTime | 12 (1 visits) | 750.00 USD |" in table
    assert lines[-1].startswith("| **Total** |")
    assert "828.00 USD" in lines[-1]


def test_breakdown_table_skips_zero_lines():
    service = {
        "breakdown": {"base_service": 70, "trip_charge": 8, "paper_overage": 0},
        "perVisitPrice": 78,
        "firstMonthTotal": 337.74,
        "contractTotal": 4052.88,
    }
    table = render_breakdown_table(service)
    assert "| Base Service Cost | 70.00 |" in table
    assert "Paper Overage" not in table
    assert "Installation" not in table
    assert "| Contract total | 4,052.88 |" in table


def test_change_table_formats_amounts_and_percentages():
    table = render_change_table(
        [
            {"serviceId": "saniclean", "fieldDisplayName": "Trip | Charge", "originalValue": 8, "newValue": 0,
             "changeAmount": -8, "changePercentage": -100.0},
            {"serviceId": "sanipod", "fieldKey": "customPerVisitPrice", "originalValue": 0, "newValue": 10,
             "changeAmount": 10, "changePercentage": None},
        ]
    )
    assert "| saniclean | Trip \\| Charge | 8.00 | 0.00 | -8.00 | -100.00% |" in table
    assert "| sanipod | customPerVisitPrice | 0.00 | 10.00 | 10.00 | - |" in table


def test_report_sections():
    proposal = _proposal()
    proposal.get("saniclean").set_override("trip_charge", 0)
    changes = [e.to_dict() for e in proposal.recorder.entries()]
    report = render_report(proposal.to_dict(), changes)
    assert report.startswith("## Agreement totals")
    assert "Global contract length: 12 months" in report
    assert "### SaniClean (`saniclean`)" in report
    assert "| saniclean | Trip Charge | 8.00 | 0.00 | -8.00 | -100.00% |" in report
    assert "## Price changes" in report
    assert "_Priced with default rates (service config unavailable)._" in report


def test_report_is_empty_without_active_services():
    proposal = ProposalSession()
    proposal.add_service({"service_id": "sanipod"})
    assert render_report(proposal.to_dict()) == ""
