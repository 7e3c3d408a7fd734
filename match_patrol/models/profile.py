import math
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _as_number(value: Any) -> float:
    """Finite float, or 0 for anything else"""
    if isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return number if math.isfinite(number) else 0


# -------- Identity --------
class UserIdentity(BaseModel):
    """Identity issued by the authentication provider"""
    model_config = ConfigDict(frozen=True)

    uid: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)


# -------- Profile --------
class PersonalInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""

    @field_validator("name", "email", "phone", "location", mode="before")
    @classmethod
    def _coerce_text(cls, v):
        return _as_text(v)


class JobPreferences(BaseModel):
    model_config = ConfigDict(extra="allow")

    preferredIndustry: str = ""
    minSalary: float = 0
    maxSalary: float = 0
    companyCareerPageUrls: List[str] = Field(default_factory=list)

    @field_validator("preferredIndustry", mode="before")
    @classmethod
    def _coerce_industry(cls, v):
        return _as_text(v)

    @field_validator("minSalary", "maxSalary", mode="before")
    @classmethod
    def _coerce_salary(cls, v):
        return _as_number(v)

    @field_validator("companyCareerPageUrls", mode="before")
    @classmethod
    def _coerce_urls(cls, v):
        return [str(u) for u in _as_list(v) if u]


class Profile(BaseModel):
    """Durable user profile, keyed by uid in the document store"""
    model_config = ConfigDict(extra="allow")

    personalInfo: PersonalInfo = Field(default_factory=PersonalInfo)
    skills: List[str] = Field(default_factory=list)
    experience: List[Any] = Field(default_factory=list)
    education: List[Any] = Field(default_factory=list)
    projects: List[Any] = Field(default_factory=list)
    jobPreferences: JobPreferences = Field(default_factory=JobPreferences)
    displayId: str = ""
    domain: List[str] = Field(default_factory=list)

    @field_validator("personalInfo", "jobPreferences", mode="before")
    @classmethod
    def _coerce_object(cls, v):
        return v if isinstance(v, dict) or isinstance(v, BaseModel) else {}

    @field_validator("skills", mode="before")
    @classmethod
    def _coerce_skills(cls, v):
        return [str(s) for s in _as_list(v) if s is not None]

    @field_validator("experience", "education", "projects", mode="before")
    @classmethod
    def _coerce_sequence(cls, v):
        return _as_list(v)

    @field_validator("displayId", mode="before")
    @classmethod
    def _coerce_display_id(cls, v):
        return _as_text(v)

    @field_validator("domain", mode="before")
    @classmethod
    def _coerce_domain(cls, v):
        if isinstance(v, str):
            v = [v]
        tags: List[str] = []
        for tag in _as_list(v):
            if tag and str(tag) not in tags:
                tags.append(str(tag))
        return tags


def empty_profile(email: str, display_id: str = "") -> Profile:
    """Skeleton profile written at first login"""
    return Profile(
        personalInfo=PersonalInfo(email=email),
        displayId=display_id,
    )


# -------- Sync --------
class SyncPayload(BaseModel):
    """Body sent to the upstream update-user endpoint"""
    user_id: str
    industry: str
    domains: List[str] = Field(default_factory=list)
    details: Dict[str, Any] = Field(default_factory=dict)
    links: List[str] = Field(default_factory=list)


class SyncOutcome(BaseModel):
    """Result of a profile push; secondary failures are reported here, never raised"""
    pushed: bool
    links_pushed: Optional[bool] = None  # None when there were no links to send
    error: Optional[str] = None


class SessionResponse(BaseModel):
    profile: Profile
    created: bool
    sync: Optional[SyncOutcome] = None
