"""Normalized user profile and the Project Squared response mapping."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping

PROVIDER = "projectsquared"

ProfileIdField = Literal["id", "user_id"]


class ProfileFormatError(ValueError):
    """Raised when a parsed profile response has no usable identity."""


@dataclass(frozen=True)
class ProfileEmail:
    value: str


@dataclass
class Profile:
    """Provider-agnostic user identity built from one profile response."""

    id: str
    display_name: str | None
    emails: List[ProfileEmail] = field(default_factory=list)
    raw_body: str = ""
    raw_json: Any = None
    provider: str = PROVIDER

    def as_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "id": self.id,
            "displayName": self.display_name,
            "emails": [{"value": e.value} for e in self.emails],
        }


def build_profile(raw_body: str, data: Any, *, id_field: ProfileIdField = "id") -> Profile:
    """Map a parsed profile response onto a :class:`Profile`.

    Two shapes are accepted:

    - nested: ``{"Profile": {"CustomerId", "Name", "PrimaryEmail"}}``
    - flat: ``{<id_field>, "name", "email"}``

    The nested shape wins whenever ``Profile`` is a JSON object. A response
    without an email yields an empty ``emails`` list rather than a
    ``{"value": None}`` entry. A missing id raises :class:`ProfileFormatError`.
    """
    if not isinstance(data, Mapping):
        raise ProfileFormatError(f"Expected a JSON object, got {type(data).__name__}")

    nested = data.get("Profile")
    if isinstance(nested, Mapping):
        user_id = nested.get("CustomerId")
        name = nested.get("Name")
        email = nested.get("PrimaryEmail")
        source = "Profile.CustomerId"
    else:
        user_id = data.get(id_field)
        name = data.get("name")
        email = data.get("email")
        source = id_field

    if user_id is None or user_id == "":
        raise ProfileFormatError(f"Profile response is missing {source}")

    return Profile(
        id=str(user_id),
        display_name=name,
        emails=[ProfileEmail(value=email)] if email else [],
        raw_body=raw_body,
        raw_json=data,
    )
