"""
Crisis Resources

Regional crisis helplines and emergency numbers, and the fixed
support messages built from them.

LEGAL_REVIEW_REQUIRED: Helpline numbers must be verified for each
region before release.
"""

from dataclasses import dataclass, field
from typing import Optional

from optimism.domain.enums import CrisisSeverity


@dataclass(frozen=True)
class CrisisResource:
    """
    A single crisis helpline.

    Attributes:
        name: Helpline name
        region: Region key (india, global)
        phone: Phone number, when the resource has one
        description: Short availability note
        url: Website
    """

    name: str
    region: str
    phone: Optional[str] = None
    description: str = ""
    url: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "region": self.region,
            "phone": self.phone,
            "description": self.description,
            "url": self.url,
        }

    def format_for_user(self) -> str:
        """Format resource as a markdown bullet."""
        contact = f"**{self.phone}**" if self.phone else self.url
        return f"- **{self.name}**: {contact}"


@dataclass(frozen=True)
class EmergencyNumber:
    """Local emergency services number."""

    country: str
    number: str

    def format_for_user(self) -> str:
        return f"- {self.country}: {self.number}"


@dataclass(frozen=True)
class CrisisResourceDirectory:
    """
    All known crisis resources.

    Usage:
        directory = CrisisResourceDirectory()
        text = directory.crisis_message(CrisisSeverity.HIGH)
    """

    resources: tuple[CrisisResource, ...] = field(default_factory=lambda: DEFAULT_RESOURCES)
    emergency_numbers: tuple[EmergencyNumber, ...] = field(
        default_factory=lambda: DEFAULT_EMERGENCY_NUMBERS
    )

    def for_region(self, region: str) -> list[CrisisResource]:
        """Resources for one region key."""
        return [r for r in self.resources if r.region == region]

    def find(self, name: str) -> CrisisResource:
        for resource in self.resources:
            if resource.name == name:
                return resource
        raise KeyError(name)

    def to_list(self) -> list[dict]:
        return [resource.to_dict() for resource in self.resources]

    def crisis_message(self, severity: CrisisSeverity) -> str:
        """
        Support message for a crisis verdict.

        HIGH lists emergency numbers and all phone helplines. MODERATE
        offers a shorter list and continues the conversation.
        """
        if severity == CrisisSeverity.HIGH:
            return self._high_severity_message()
        return self._moderate_severity_message()

    def _high_severity_message(self) -> str:
        emergency = "\n".join(
            number.format_for_user() for number in self.emergency_numbers[:3]
        )
        helplines = "\n".join(
            self.find(name).format_for_user()
            for name in (
                "988 Suicide & Crisis Lifeline (US)",
                "Samaritans (UK)",
                "AASRA",
                "Vandrevala Foundation",
            )
        )
        return (
            "I'm really glad you're here and sharing this with me. What you're feeling "
            "right now matters, and I want to make sure you have the support you need.\n\n"
            "**Please reach out to someone who can help right now:**\n\n"
            "**If you're in immediate danger, call emergency services:**\n"
            f"{emergency}\n\n"
            "**Crisis Helplines (24/7, free, confidential):**\n"
            f"{helplines}\n\n"
            "You don't have to carry this alone. These people are trained to help, "
            "and they want to hear from you.\n\n"
            "I'm here to continue exploring what you're going through whenever you're "
            "ready, but please prioritize connecting with a human who can support you "
            "right now."
        )

    def _moderate_severity_message(self) -> str:
        helplines = "\n".join(
            self.find(name).format_for_user()
            for name in ("988 Suicide & Crisis Lifeline (US)", "Samaritans (UK)", "AASRA")
        )
        return (
            "It's okay to reach out for more support. Sometimes talking to a trained "
            "listener can help in ways that go beyond what I can offer.\n\n"
            "**Here are some resources if you need them:**\n"
            f"{helplines}\n\n"
            "These are free, confidential, and available 24/7. You don't have to be in "
            "crisis to call. They're there to listen."
        )


DEFAULT_RESOURCES: tuple[CrisisResource, ...] = (
    CrisisResource(
        name="AASRA",
        region="india",
        phone="+91-22-27546669",
        description="24x7 helpline for emotional support",
        url="https://aasra.info",
    ),
    CrisisResource(
        name="Vandrevala Foundation",
        region="india",
        phone="+91-22-25706000",
        description="Mental health helpline",
        url="https://vandrevalafoundation.com",
    ),
    CrisisResource(
        name="iCall (TATA Institute)",
        region="india",
        phone="+91-22-25521111",
        description="Mon-Sat, 8am-10pm",
        url="https://icallhelpline.org",
    ),
    CrisisResource(
        name="International Association for Suicide Prevention",
        region="global",
        url="https://www.iasp.info/resources/Crisis_Centres/",
    ),
    CrisisResource(
        name="Samaritans (UK)",
        region="global",
        phone="116 123",
        description="Free, 24/7",
        url="https://www.samaritans.org",
    ),
    CrisisResource(
        name="988 Suicide & Crisis Lifeline (US)",
        region="global",
        phone="988",
        description="Call or text, 24/7",
        url="https://988lifeline.org",
    ),
)

DEFAULT_EMERGENCY_NUMBERS: tuple[EmergencyNumber, ...] = (
    EmergencyNumber(country="US/Canada", number="911"),
    EmergencyNumber(country="UK", number="999"),
    EmergencyNumber(country="India", number="112"),
    EmergencyNumber(country="Australia", number="000"),
)


def get_disclaimer(is_crisis: bool) -> str:
    """Short disclaimer attached to every pipeline reply."""
    if is_crisis:
        return (
            "Important: I'm an AI, not a mental health professional. If you're in "
            "crisis, please reach out to a human who can help. The resources above "
            "are available 24/7."
        )
    return (
        "Remember: I'm an AI support tool, not a therapist. This is a space for "
        "reflection, but professional help is always available if you need it."
    )
