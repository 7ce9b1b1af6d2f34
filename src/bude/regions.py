"""Regions served by the events and banner slots."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping


@dataclass(frozen=True, slots=True)
class Region:
    id: str
    name: str
    display_name: str
    hub_zip: str
    state: str
    is_active: bool
    zip_prefixes: tuple[str, ...]
    organizations: tuple[str, ...] = ()
    scrape_urls: Mapping[str, str] = field(default_factory=dict)


REGIONS: dict[str, Region] = {
    "grand-rapids": Region(
        id="grand-rapids",
        name="Grand Rapids",
        display_name="Grand Rapids, MI",
        hub_zip="49503",
        state="MI",
        is_active=True,
        zip_prefixes=("493", "494", "495"),
        organizations=(
            "GR Chamber of Commerce",
            "Rotary Club",
            "CREW",
            "GRYP",
            "Economic Club of Grand Rapids",
            "Create Great Leaders",
            "Right Place",
            "Bamboo GR",
            "Hello West Michigan",
            "CARWM",
            "Creative Mornings GR",
            "Athena",
            "Inforum",
            "Start Garden",
        ),
        scrape_urls={
            "GR Chamber of Commerce": "https://www.grandrapids.org/events",
            "Rotary Club": "https://www.grandrapidsrotary.org/events",
            "CREW": "https://www.crewgrandrapids.org/events",
            "GRYP": "https://www.gryp.org/events",
            "Economic Club of Grand Rapids": "https://economicclubgr.org/events",
            "Bamboo GR": "https://bamboograndrapids.com/events",
            "Hello West Michigan": "https://hellowestmichigan.com/events",
            "CARWM": "https://carwm.org/events",
            "Creative Mornings GR": "https://creativemornings.com/cities/grr",
            "Athena": "https://athenawestmichigan.org/events",
            "Inforum": "https://inforummichigan.org/events",
            "Start Garden": "https://startgarden.com/events",
        },
    ),
    "detroit": Region(
        id="detroit",
        name="Detroit",
        display_name="Detroit Metro",
        hub_zip="48243",
        state="MI",
        is_active=False,
        zip_prefixes=("480", "481", "482", "483"),
        organizations=(
            "Detroit Regional Chamber",
            "Detroit Economic Club",
            "Ann Arbor SPARK",
            "Detroit Young Professionals (DYP)",
            "Inforum",
            "CREW Detroit",
            "TechTown Detroit",
            "Build Institute",
            "Automation Alley",
        ),
        scrape_urls={
            "Detroit Regional Chamber": "https://www.detroitchamber.com/events/",
            "Detroit Economic Club": "https://econclub.org/events/",
            "TechTown Detroit": "https://techtowndetroit.org/events/",
            "Inforum": "https://inforummichigan.org/events",
            "CREW Detroit": "https://detroit.crewnetwork.org/events",
            "Automation Alley": "https://www.automationalley.com/events/events-menu",
        },
    ),
    "chicago": Region(
        id="chicago",
        name="Chicago",
        display_name="Chicago Metro",
        hub_zip="60601",
        state="IL",
        is_active=False,
        zip_prefixes=("600", "601", "602", "603", "604", "605", "606", "607", "608"),
        organizations=(
            "Chicagoland Chamber of Commerce",
            "1871",
            "mHub",
            "Built In Chicago",
            "Economic Club of Chicago",
        ),
        scrape_urls={
            "Chicagoland Chamber of Commerce": "https://www.chicagolandchamber.org/events/",
            "1871": "https://1871.com/events/",
            "mHub": "https://www.mhubchicago.com/events",
            "Built In Chicago": "https://www.builtinchicago.org/events",
        },
    ),
}


def is_valid_region(region_id: str | None) -> bool:
    return bool(region_id) and region_id in REGIONS


def get_region(region_id: str) -> Region:
    try:
        return REGIONS[region_id]
    except KeyError:
        raise KeyError(f"Region '{region_id}' not found") from None


def detect_region(zip_code: str | None) -> str:
    """Return the region id covering a 5-digit zip code, or an empty string."""
    if not zip_code or len(zip_code) != 5 or not zip_code.isdigit():
        return ""
    for region in REGIONS.values():
        if zip_code[:3] in region.zip_prefixes:
            return region.id
    return ""


def region_options(include_inactive: bool = False) -> list[dict[str, str]]:
    return [
        {"id": region.id, "name": region.name, "display_name": region.display_name}
        for region in REGIONS.values()
        if include_inactive or region.is_active
    ]
