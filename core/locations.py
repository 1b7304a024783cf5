"""
UK location hierarchy used to widen location preferences.

Region -> sub-region -> local authority. An investor who picks a region or
sub-region wants every local authority inside it, so a preferred token is
expanded before comparing it with a listing's local authority.

Coverage is limited to the areas listings are currently taken in; tokens
that are not known areas expand to themselves.
"""

from __future__ import annotations

from typing import Dict, Final, FrozenSet, Iterable, List


# =============================================================================
# Hierarchy
# =============================================================================

UK_REGIONS: Final[Dict[str, List[str]]] = {
    "London": [
        "Central London",
        "North London",
        "North West London",
        "East London",
        "South East London",
        "South West London",
        "West London",
    ],
    "North West": [
        "Greater Manchester",
        "Merseyside",
        "Cheshire",
    ],
    "North East & Yorkshire": [
        "Tyne & Wear",
        "West Yorkshire",
        "South Yorkshire",
    ],
    "Midlands": [
        "West Midlands (Metropolitan)",
    ],
    "South East": [
        "Kent & Medway",
    ],
}

LOCAL_AUTHORITIES: Final[Dict[str, List[str]]] = {
    # London
    "Central London": ["Camden", "City of London", "Islington", "Westminster"],
    "North London": ["Barnet", "Enfield", "Haringey"],
    "North West London": ["Brent", "Harrow"],
    "East London": [
        "Barking and Dagenham",
        "Hackney",
        "Havering",
        "Newham",
        "Redbridge",
        "Tower Hamlets",
        "Waltham Forest",
    ],
    "South East London": ["Bexley", "Bromley", "Greenwich", "Lewisham"],
    "South West London": [
        "Croydon",
        "Kingston upon Thames",
        "Lambeth",
        "Merton",
        "Richmond upon Thames",
        "Southwark",
        "Sutton",
        "Wandsworth",
    ],
    "West London": [
        "Ealing",
        "Hammersmith and Fulham",
        "Hillingdon",
        "Hounslow",
        "Kensington and Chelsea",
    ],
    # North West
    "Greater Manchester": [
        "Bolton",
        "Bury",
        "Manchester",
        "Oldham",
        "Rochdale",
        "Salford",
        "Stockport",
        "Tameside",
        "Trafford",
        "Wigan",
    ],
    "Merseyside": ["Knowsley", "Liverpool", "Sefton", "St Helens", "Wirral"],
    "Cheshire": ["Cheshire East", "Cheshire West and Chester", "Halton", "Warrington"],
    # North East & Yorkshire
    "Tyne & Wear": [
        "Gateshead",
        "Newcastle upon Tyne",
        "North Tyneside",
        "South Tyneside",
        "Sunderland",
    ],
    "West Yorkshire": ["Bradford", "Calderdale", "Kirklees", "Leeds", "Wakefield"],
    "South Yorkshire": ["Barnsley", "Doncaster", "Rotherham", "Sheffield"],
    # Midlands
    "West Midlands (Metropolitan)": [
        "Birmingham",
        "Coventry",
        "Dudley",
        "Sandwell",
        "Solihull",
        "Walsall",
        "Wolverhampton",
    ],
    # South East
    "Kent & Medway": [
        "Ashford",
        "Canterbury",
        "Dartford",
        "Dover",
        "Folkestone and Hythe",
        "Gravesham",
        "Maidstone",
        "Medway",
    ],
}

_REGIONS_LOWER: Final[Dict[str, List[str]]] = {
    region.lower(): subs for region, subs in UK_REGIONS.items()
}
_SUB_REGIONS_LOWER: Final[Dict[str, List[str]]] = {
    sub.lower(): auths for sub, auths in LOCAL_AUTHORITIES.items()
}


# =============================================================================
# Expansion
# =============================================================================


def expand_area(area: str) -> FrozenSet[str]:
    """
    Expand an area name to lower-cased local authority names.

    - Region (e.g. "London") -> every authority in each of its sub-regions
    - Sub-region (e.g. "East London") -> its authorities
    - Anything else -> the name itself
    """
    key = (area or "").strip().lower()
    if not key:
        return frozenset()

    if key in _REGIONS_LOWER:
        result = set()
        for sub_region in _REGIONS_LOWER[key]:
            result.update(a.lower() for a in LOCAL_AUTHORITIES.get(sub_region, []))
        return frozenset(result)

    if key in _SUB_REGIONS_LOWER:
        return frozenset(a.lower() for a in _SUB_REGIONS_LOWER[key])

    return frozenset({key})


def expand_areas(areas: Iterable[str]) -> FrozenSet[str]:
    """Union of ``expand_area`` over several tokens."""
    result = set()
    for area in areas:
        result.update(expand_area(area))
    return frozenset(result)
