from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..pricing.frequency import FrequencyKey, parse_frequency
from ..pricing.units import flat_rate_with_minimum, small_facility_price
from .base import RATE_TIER_SPECS, BaseServiceModel
from .types import InputSpec, RateSpec, ServicePricing

_ALC = "standardALaCartePricing"
_GEO = "geographicPricing"
_SUPPLY = "monthlyAddOnSupplyPricing"


class SaniCleanModel(BaseServiceModel):
    """SaniClean restroom hygiene (per fixture, weekly rates).

    Two pricing modes:
    - per item: region rate per fixture with a region minimum, plus trip
      (and parking inside the beltway). Small facilities pay a flat minimum
      that already includes the trip charge.
    - all inclusive: one rate per fixture; trip, warranty, facility
      components and microfiber mopping are included, paper is credited per
      fixture and only the overage is billed. ``auto`` switches to it at the
      configured fixture count.
    """

    service_id = "saniclean"
    display_name = "SaniClean"
    default_frequency = FrequencyKey.WEEKLY
    # Visits-per-month guesses the SaniClean forms used for cycle cadences.
    visit_approximations = {
        FrequencyKey.BIMONTHLY: 0.5,
        FrequencyKey.QUARTERLY: 0.33,
        FrequencyKey.BIANNUAL: 0.17,
        FrequencyKey.ANNUAL: 0.083,
    }

    def input_specs(self) -> Dict[str, InputSpec]:
        return {
            "sinks": InputSpec("sinks", qualifying=True, default=0),
            "urinals": InputSpec("urinals", qualifying=True, default=0),
            "male_toilets": InputSpec("male_toilets", qualifying=True, default=0),
            "female_toilets": InputSpec("female_toilets", qualifying=True, default=0),
            "location": InputSpec("location", kind="choice", default="insideBeltway", choices=("insideBeltway", "outsideBeltway")),
            "needs_parking": InputSpec("needs_parking", kind="bool", default=False),
            "pricing_mode": InputSpec("pricing_mode", kind="choice", default="auto", choices=("auto", "perItem", "allInclusive")),
            "soap_type": InputSpec("soap_type", kind="choice", default="standard", choices=("standard", "luxury")),
            "excess_soap_gallons": InputSpec("excess_soap_gallons", default=0),
            "add_microfiber": InputSpec("add_microfiber", kind="bool", default=False),
            "microfiber_bathrooms": InputSpec("microfiber_bathrooms", default=0),
            "warranty_dispensers": InputSpec("warranty_dispensers", default=0),
            "urinal_screens": InputSpec("urinal_screens", default=0),
            "urinal_mats": InputSpec("urinal_mats", default=0),
            "toilet_clips": InputSpec("toilet_clips", default=0),
            "seat_cover_dispensers": InputSpec("seat_cover_dispensers", default=0),
            "sanipods": InputSpec("sanipods", default=0),
            "facility_components_frequency": InputSpec(
                "facility_components_frequency",
                kind="choice",
                default="service",
                choices=("service", "weekly", "biweekly", "monthly"),
                description="Billing cadence of facility components; service follows the main frequency",
            ),
            "paper_spend": InputSpec("paper_spend", kind="money", default=0, description="Weekly paper spend"),
            "rate_tier": InputSpec("rate_tier", kind="choice", default="redRate", choices=("redRate", "greenRate")),
        }

    def rate_specs(self) -> List[RateSpec]:
        return [
            RateSpec("insideBeltwayRatePerFixture", 7, (f"{_ALC}.insideBeltway.pricePerFixture", f"{_GEO}.insideBeltway.ratePerFixture")),
            RateSpec("insideBeltwayMinimum", 40, (f"{_ALC}.insideBeltway.minimumPrice", f"{_GEO}.insideBeltway.weeklyMinimum")),
            RateSpec("insideBeltwayTripCharge", 8, (f"{_ALC}.insideBeltway.tripCharge", f"{_GEO}.insideBeltway.tripCharge")),
            RateSpec("insideBeltwayParkingFee", 7, (f"{_ALC}.insideBeltway.parkingFeeAddOn", f"{_GEO}.insideBeltway.parkingFee")),
            RateSpec("outsideBeltwayRatePerFixture", 6, (f"{_ALC}.outsideBeltway.pricePerFixture", f"{_GEO}.outsideBeltway.ratePerFixture")),
            RateSpec("outsideBeltwayMinimum", 0, (f"{_ALC}.outsideBeltway.minimumPrice", f"{_GEO}.outsideBeltway.weeklyMinimum")),
            RateSpec("outsideBeltwayTripCharge", 8, (f"{_ALC}.outsideBeltway.tripCharge", f"{_GEO}.outsideBeltway.tripCharge")),
            RateSpec("smallFacilityThreshold", 5, ("smallBathroomMinimums.minimumFixturesThreshold", "smallFacilityMinimum.fixtureThreshold")),
            RateSpec("smallFacilityMinimum", 50, ("smallBathroomMinimums.minimumPriceUnderThreshold", "smallFacilityMinimum.minimumWeeklyCharge")),
            RateSpec("allInclusiveRatePerFixture", 20, ("allInclusivePricing.pricePerFixture", "allInclusivePackage.weeklyRatePerFixture")),
            RateSpec(
                "autoAllInclusiveMinFixtures",
                8,
                ("allInclusivePricing.autoAllInclusiveMinFixtures", "allInclusivePackage.autoAllInclusiveMinFixtures", "autoAllInclusiveMinFixtures"),
            ),
            RateSpec("luxuryUpgradePerDispenser", 5, ("soapUpgrades.standardToLuxuryPerDispenserPerWeek", "soapUpgrades.standardToLuxury")),
            RateSpec(
                "excessStandardSoapPerGallon",
                13,
                ("soapUpgrades.excessUsageCharges.standardSoapPerGallon", "soapUpgrades.excessUsageCharges.standardSoap"),
            ),
            RateSpec(
                "excessLuxurySoapPerGallon",
                30,
                ("soapUpgrades.excessUsageCharges.luxurySoapPerGallon", "soapUpgrades.excessUsageCharges.luxurySoap"),
            ),
            RateSpec("paperCreditPerFixture", 5, ("paperCredit.creditPerFixturePerWeek", "allInclusivePackage.paperCreditPerFixture")),
            RateSpec(
                "microfiberPerBathroom",
                10,
                ("microfiberMoppingIncludedWithSaniClean.pricePerBathroom", "addOnServices.microfiberMopping.pricePerBathroom"),
            ),
            RateSpec("warrantyFeePerDispenser", 1, ("warrantyFees.soapDispenserWarrantyFeePerWeek", "warrantyFeePerDispenser")),
            RateSpec("urinalMatRate", 8, (f"{_SUPPLY}.urinalMatMonthlyPrice", "facilityComponents.urinals.urinalMat")),
            RateSpec(
                "urinalScreenRate",
                8,
                (f"{_SUPPLY}.urinalScreenMonthlyPrice", "facilityComponents.urinals.urinalScreen"),
                included_as="urinalMatRate",
            ),
            RateSpec("toiletClipRate", 2, (f"{_SUPPLY}.toiletClipMonthlyPrice", "facilityComponents.maleToilets.toiletClips")),
            RateSpec(
                "seatCoverDispenserRate",
                2,
                (f"{_SUPPLY}.toiletSeatCoverDispenserMonthlyPrice", "facilityComponents.maleToilets.seatCoverDispenser"),
                included_as="toiletClipRate",
            ),
            RateSpec("sanipodServiceRate", 4, (f"{_SUPPLY}.sanipodMonthlyPricePerPod", "facilityComponents.femaleToilets.sanipodService")),
        ] + RATE_TIER_SPECS

    def component_fields(self) -> List[str]:
        return [
            "base_service",
            "trip_charge",
            "facility_components",
            "soap_upgrade",
            "excess_soap",
            "microfiber_mopping",
            "warranty_fees",
            "paper_overage",
        ]

    def fixture_count(self, inputs: Mapping[str, Any]) -> float:
        return inputs["sinks"] + inputs["urinals"] + inputs["male_toilets"] + inputs["female_toilets"]

    def is_all_inclusive(self, inputs: Mapping[str, Any], rates: Mapping[str, float]) -> bool:
        mode = inputs["pricing_mode"]
        if mode == "allInclusive":
            return True
        if mode == "perItem":
            return False
        fixtures = self.fixture_count(inputs)
        return fixtures > 0 and fixtures >= rates["autoAllInclusiveMinFixtures"]

    def price(self, inputs: Dict[str, Any], rates: Mapping[str, float], frequency: FrequencyKey) -> ServicePricing:
        fixtures = self.fixture_count(inputs)
        tier = self.tier_multiplier(inputs, rates)
        luxury = inputs["soap_type"] == "luxury"
        details: List[str] = []
        out = dict.fromkeys(self.component_fields(), 0.0)

        out["soap_upgrade"] = inputs["sinks"] * rates["luxuryUpgradePerDispenser"] if luxury else 0.0
        soap_rate = rates["excessLuxurySoapPerGallon"] if luxury else rates["excessStandardSoapPerGallon"]
        out["excess_soap"] = inputs["excess_soap_gallons"] * soap_rate

        if self.is_all_inclusive(inputs, rates):
            rate = rates["allInclusiveRatePerFixture"] * tier
            out["base_service"] = fixtures * rate
            credit = fixtures * rates["paperCreditPerFixture"]
            out["paper_overage"] = max(inputs["paper_spend"] - credit, 0.0)
            details.append(f"All-inclusive: {fixtures:g} fixtures @ ${rate:,.2f}")
            details.append("Trip charge, warranty, facility components and microfiber mopping included")
            if inputs["paper_spend"] > 0:
                details.append(f"Paper credit ${credit:,.2f}/week")
            return ServicePricing(breakdown=out, details=details)

        inside = inputs["location"] == "insideBeltway"
        region = "insideBeltway" if inside else "outsideBeltway"
        rate = rates[f"{region}RatePerFixture"] * tier
        fees = rates[f"{region}TripCharge"]
        if inside and inputs["needs_parking"]:
            fees += rates["insideBeltwayParkingFee"]

        regular = flat_rate_with_minimum(fixtures, rate, rates[f"{region}Minimum"])
        base, trip, small = small_facility_price(
            fixtures, rates["smallFacilityThreshold"], rates["smallFacilityMinimum"], regular, fees
        )
        out["base_service"] = base
        out["trip_charge"] = trip
        if fixtures > 0:
            details.append(f"{fixtures:g} fixtures @ ${rate:,.2f} ({'inside' if inside else 'outside'} beltway)")
        if small:
            details.append(f"Small facility minimum ${rates['smallFacilityMinimum']:,.2f} (includes trip charge)")

        out["facility_components"] = (
            inputs["urinal_screens"] * rates["urinalScreenRate"]
            + inputs["urinal_mats"] * rates["urinalMatRate"]
            + inputs["toilet_clips"] * rates["toiletClipRate"]
            + inputs["seat_cover_dispensers"] * rates["seatCoverDispenserRate"]
            + inputs["sanipods"] * rates["sanipodServiceRate"]
        )
        if inputs["add_microfiber"]:
            out["microfiber_mopping"] = inputs["microfiber_bathrooms"] * rates["microfiberPerBathroom"]
        out["warranty_fees"] = inputs["warranty_dispensers"] * rates["warrantyFeePerDispenser"]

        cadences: Dict[str, FrequencyKey] = {}
        own = inputs["facility_components_frequency"]
        if own != "service" and parse_frequency(own) is not frequency:
            cadences["facility_components"] = parse_frequency(own)
            if out["facility_components"]:
                details.append(f"Facility components billed {own} at ${out['facility_components']:,.2f}")
        return ServicePricing(breakdown=out, details=details, component_cadences=cadences)
