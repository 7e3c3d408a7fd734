from typing import List, Optional

from match_patrol.models.profile import Profile

DEFAULT_DOMAINS = ["Technology", "Business", "General"]

# (substrings, tags) checked against preferredIndustry in order; first hit wins
INDUSTRY_RULES = [
    (("Technology", "IT"), ["Technology", "Software", "IT Services"]),
    (("Finance",), ["Finance", "Banking", "Investment"]),
    (("Healthcare",), ["Healthcare", "Medical", "Pharmaceutical"]),
]
OTHER_INDUSTRY_DOMAINS = ["General", "Business", "Consulting"]

# (lowercase substrings, tag) checked against every skill
SKILL_RULES = [
    (("javascript", "vue", "react"), "Technology"),
    (("python", "data"), "Data Science"),
    (("design", "ui"), "Design"),
]


def _add(tags: List[str], tag: str) -> None:
    if tag not in tags:
        tags.append(tag)


def industry_domains(industry: Optional[str]) -> List[str]:
    if not industry:
        return []
    for needles, tags in INDUSTRY_RULES:
        if any(needle in industry for needle in needles):
            return list(tags)
    return list(OTHER_INDUSTRY_DOMAINS)


def infer_domains(profile: Profile) -> List[str]:
    """Derive interest tags for a profile that has no authoritative domain data.

    Industry rules run first, then skill rules; tags keep first-seen order and
    duplicates are dropped. The result is never empty.
    """
    tags: List[str] = []
    for tag in industry_domains(profile.jobPreferences.preferredIndustry):
        _add(tags, tag)

    for skill in profile.skills:
        lowered = skill.lower()
        for needles, tag in SKILL_RULES:
            if any(needle in lowered for needle in needles):
                _add(tags, tag)

    if not tags:
        tags = list(DEFAULT_DOMAINS)
    return tags
