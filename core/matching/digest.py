"""
New-listing match digests.

A digest collects the strong matches among recently listed properties for
one investor. Rendering produces the plain-text body handed to the email
service; delivery itself is not done here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from core.models import MatchResult, Property, utc_now
from utils.formatting import format_pence

TEMPLATES_DIR = Path(__file__).parent / "templates"
DEFAULT_SITE_URL = "https://aceinvestmentproperties.co.uk"

_environment = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)
_environment.filters["pence"] = format_pence


@dataclass
class MatchDigest:
    """Strong new-listing matches for one investor, best first."""

    investor_id: str
    matches: List[MatchResult]
    properties: Dict[str, Property]
    generated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not self.matches:
            raise ValueError("a digest needs at least one match")

    @property
    def best(self) -> MatchResult:
        return self.matches[0]

    @property
    def best_property(self) -> Property:
        return self.properties[self.best.entity_id]

    @property
    def subject(self) -> str:
        return f"New {self.best.score}% Match: {self.best_property.display_title}"

    def to_dict(self) -> dict:
        return {
            "investorId": self.investor_id,
            "subject": self.subject,
            "generatedAt": self.generated_at.isoformat(),
            "matches": [m.to_dict(id_key="propertyId") for m in self.matches],
        }


def render_digest(digest: MatchDigest, site_url: str = DEFAULT_SITE_URL) -> str:
    """
    Render a digest as a plain-text email body.

    Args:
        digest: The digest to render
        site_url: Base URL for property and dashboard links

    Returns:
        Rendered text
    """
    template = _environment.get_template("new_match_digest.txt")
    return template.render(
        subject=digest.subject,
        best=digest.best,
        best_property=digest.best_property,
        others=digest.matches[1:],
        properties=digest.properties,
        site_url=site_url.rstrip("/"),
    )
