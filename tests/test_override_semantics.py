from agreement_pricing.session import ProposalSession


def _saniclean(proposal):
    return proposal.add_service(
        {"service_id": "saniclean", "inputs": {"sinks": 6, "urinals": 4, "pricing_mode": "perItem"}}
    )


def test_setting_the_same_override_twice_is_idempotent():
    session = _saniclean(ProposalSession())
    session.set_override("per_visit_price", 95)
    first = session.quote().to_dict()
    session.set_override("per_visit_price", 95)
    assert session.quote().to_dict() == first
    assert len(session.recorder.entries()) == 1


def test_quantity_change_drops_every_override():
    proposal = ProposalSession()
    session = _saniclean(proposal)
    session.set_override("trip_charge", 0)
    session.set_override("contract_total", 1000)
    proposal.update_input("saniclean", "urinals", 6)
    # the recalculated figures come back, not the pinned ones
    assert session.state.overrides == {}
    assert session.quote().breakdown["trip_charge"] == 8


def test_more_fixtures_never_cost_less():
    proposal = ProposalSession()
    session = _saniclean(proposal)
    previous = 0.0
    for sinks in range(0, 30):
        proposal.update_input("saniclean", "sinks", sinks)
        per_visit = session.quote().per_visit
        assert per_visit >= previous
        previous = per_visit


def test_override_round_trip_restores_the_calculated_value():
    session = _saniclean(ProposalSession())
    calculated = session.quote().monthly_recurring
    session.set_override("monthly_recurring", calculated)
    session.set_override("monthly_recurring", None)
    assert session.state.overrides == {}
    assert session.quote().monthly_recurring == calculated
    assert session.recorder.entries() == []
