from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple

from ..pricing.frequency import FrequencyKey
from .base import BaseServiceModel
from .types import InputSpec, RateSpec, ServicePricing


class FoamingDrainModel(BaseServiceModel):
    """Foaming drain treatment, plus grease traps and green drains.

    Standard drains pay the cheaper of a flat per-drain rate or a base charge
    plus a smaller per-drain rate. Accounts above the volume threshold may put
    drains on the install program, billed at the install cadence rate.

    One-time installation covers filthy drains (weekly cost x multiplier),
    grease traps and green drains. The first visit charges the installation
    together with the drain service; a filthy install replaces the standard
    drain charge for that visit.
    """

    service_id = "foamingDrain"
    display_name = "Foaming Drain"
    default_frequency = FrequencyKey.WEEKLY
    has_installation = True
    install_stacks_service = True

    def input_specs(self) -> Dict[str, InputSpec]:
        return {
            "standard_drains": InputSpec("standard_drains", qualifying=True, default=0),
            "install_drains": InputSpec("install_drains", default=0),
            "install_frequency": InputSpec("install_frequency", kind="choice", default="weekly", choices=("weekly", "bimonthly")),
            "facility_condition": InputSpec("facility_condition", kind="choice", default="normal", choices=("normal", "filthy")),
            "filthy_drains": InputSpec("filthy_drains", default=0, description="0 means all standard drains"),
            "pricing_option": InputSpec("pricing_option", kind="choice", default="auto", choices=("auto", "smallAlt", "bigAccountTen")),
            "all_inclusive": InputSpec("all_inclusive", kind="bool", default=False),
            "needs_plumbing": InputSpec("needs_plumbing", kind="bool", default=False),
            "plumbing_drains": InputSpec("plumbing_drains", default=0),
            "grease_traps": InputSpec("grease_traps", qualifying=True, default=0),
            "charge_grease_trap_install": InputSpec("charge_grease_trap_install", kind="bool", default=True),
            "green_drains": InputSpec("green_drains", qualifying=True, default=0),
        }

    def rate_specs(self) -> List[RateSpec]:
        return [
            RateSpec("standardDrainRate", 10, ("standardPricing.standardDrainRate", "standardDrainRate")),
            RateSpec("altBaseCharge", 20, ("standardPricing.alternateBaseCharge", "altBaseCharge")),
            RateSpec("altExtraPerDrain", 4, ("standardPricing.alternateExtraPerDrain", "altExtraPerDrain")),
            RateSpec("volumeMinimumDrains", 10, ("volumePricing.minimumDrains", "volumeMinimumDrains")),
            RateSpec("volumeWeeklyRate", 20, ("volumePricing.weeklyRatePerDrain", "volumePricing.weekly.ratePerDrain")),
            RateSpec("volumeBimonthlyRate", 10, ("volumePricing.bimonthlyRatePerDrain", "volumePricing.bimonthly.ratePerDrain")),
            RateSpec("greaseWeeklyRate", 125, ("greaseTrapPricing.weeklyRatePerTrap", "grease.weeklyRatePerTrap")),
            RateSpec("greaseInstallRate", 300, ("greaseTrapPricing.installPerTrap", "grease.installPerTrap")),
            RateSpec("greenWeeklyRate", 5, ("greenDrainPricing.weeklyRatePerDrain", "green.weeklyRatePerDrain")),
            RateSpec("greenInstallRate", 100, ("greenDrainPricing.installPerDrain", "green.installPerDrain")),
            RateSpec("plumbingAddonRate", 10, ("addOns.plumbingWeeklyAddonPerDrain", "plumbing.weeklyAddonPerDrain")),
            RateSpec("filthyMultiplier", 3, ("installationMultipliers.filthyMultiplier", "installationRules.filthyMultiplier")),
            RateSpec("minimumChargePerVisit", 50, ("minimumChargePerVisit", "minimums.perVisit")),
        ]

    def component_fields(self) -> List[str]:
        return ["standard_drains", "install_drains", "plumbing", "grease_traps", "green_drains", "minimum_adjustment"]

    def _standard_charge(self, drains: float, option: str, rates: Mapping[str, float]) -> Tuple[float, bool]:
        if drains <= 0:
            return 0.0, False
        flat = drains * rates["standardDrainRate"]
        alt = rates["altBaseCharge"] + rates["altExtraPerDrain"] * drains
        if option == "smallAlt":
            return alt, True
        if option == "bigAccountTen":
            return flat, False
        if alt < flat:
            return alt, True
        return flat, False

    def price(self, inputs: Dict[str, Any], rates: Mapping[str, float], frequency: FrequencyKey) -> ServicePricing:
        details: List[str] = []
        drains = inputs["standard_drains"]
        option = inputs["pricing_option"]
        volume = drains >= rates["volumeMinimumDrains"]
        install_program = volume and option != "bigAccountTen" and not inputs["all_inclusive"]

        install_drains = min(inputs["install_drains"], drains) if install_program else 0.0
        active = 0.0 if inputs["all_inclusive"] else max(drains - install_drains, 0.0)

        standard, used_alt = self._standard_charge(active, option, rates)
        if standard:
            if used_alt:
                details.append(f"{active:g} drains @ ${rates['altBaseCharge']:,.2f} + ${rates['altExtraPerDrain']:,.2f}/drain")
            else:
                details.append(f"{active:g} drains @ ${rates['standardDrainRate']:,.2f}")
        if inputs["all_inclusive"] and drains > 0:
            details.append("Standard drains included (all-inclusive)")

        program = 0.0
        if install_drains > 0:
            bimonthly = inputs["install_frequency"] == "bimonthly"
            rate = rates["volumeBimonthlyRate"] if bimonthly else rates["volumeWeeklyRate"]
            program = install_drains * rate
            details.append(f"Install program: {install_drains:g} drains @ ${rate:,.2f} ({inputs['install_frequency']})")

        plumbing = inputs["plumbing_drains"] * rates["plumbingAddonRate"] if inputs["needs_plumbing"] else 0.0
        grease = inputs["grease_traps"] * rates["greaseWeeklyRate"]
        green = inputs["green_drains"] * rates["greenWeeklyRate"]

        raw = standard + program + plumbing + grease + green
        adjustment = max(rates["minimumChargePerVisit"] - raw, 0.0) if raw > 0 else 0.0
        if adjustment:
            details.append(f"Per-visit minimum ${rates['minimumChargePerVisit']:,.2f}")

        # one-time installation
        filthy_install = 0.0
        if inputs["facility_condition"] == "filthy" and active > 0 and option != "bigAccountTen":
            filthy = inputs["filthy_drains"]
            filthy = filthy if 0 < filthy <= active else active
            if used_alt:
                weekly_cost = rates["altBaseCharge"] + rates["altExtraPerDrain"] * filthy
            else:
                weekly_cost = rates["standardDrainRate"] * filthy
            filthy_install = weekly_cost * rates["filthyMultiplier"]
            details.append(f"Filthy install: {filthy:g} drains x{rates['filthyMultiplier']:g}")
        grease_install = (
            inputs["grease_traps"] * rates["greaseInstallRate"] if inputs["charge_grease_trap_install"] else 0.0
        )
        green_install = inputs["green_drains"] * rates["greenInstallRate"]
        installation_total = filthy_install + grease_install + green_install

        installation = None
        shares = None
        if installation_total > 0:
            installation = installation_total
            # a filthy install replaces that visit's standard drain charge
            shares = {"standard_drains": 0.0 if filthy_install > 0 else 1.0, "install_drains": 1.0, "plumbing": 1.0}

        return ServicePricing(
            breakdown={
                "standard_drains": standard,
                "install_drains": program,
                "plumbing": plumbing,
                "grease_traps": grease,
                "green_drains": green,
                "minimum_adjustment": adjustment,
            },
            details=details,
            installation=installation,
            first_visit_shares=shares,
        )
