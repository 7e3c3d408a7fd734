"""
Canned responses served when the matching service cannot be reached
"""
import copy
from typing import Any, Dict, List, Optional


def _job(job_id: int, title: str, company: str, location: str, salary: str, description: str,
         score: int, skills_match: Optional[int] = None, experience_match: Optional[int] = None) -> Dict[str, Any]:
    job = {
        "id": job_id,
        "title": title,
        "company": company,
        "location": location,
        "salary": salary,
        "description": description,
        "match_score": score,
    }
    if skills_match is not None:
        job["job_details"] = {"details": {"title": title, "company_name": company, "location": location}}
        job["match_result"] = {
            "overall_match": score,
            "skills_match": skills_match,
            "experience_match": experience_match,
        }
    return job


FALLBACK_MATCHES = [
    _job(1, "Software Engineer", "Tech Corp", "Remote", "$80,000 - $120,000",
         "Full-stack development role with modern technologies", 85, 90, 80),
    _job(2, "Frontend Developer", "Startup Inc", "San Francisco, CA", "$90,000 - $130,000",
         "React/Vue.js development for innovative startup", 78, 85, 70),
    _job(3, "Data Scientist", "Analytics Pro", "New York, NY", "$100,000 - $140,000",
         "Machine learning and data analysis role", 82, 88, 75),
]

FALLBACK_RECOMMENDED = [
    _job(3, "Senior Developer", "Enterprise Solutions", "New York, NY", "$120,000 - $160,000",
         "Senior role with leadership opportunities", 92),
]

FALLBACK_STATISTICS = {
    "matched_jobs_count": 15,
    "recommended_jobs_count": 8,
    "total_applications": 3,
    "average_match_score": 78.5,
}

# (domain substrings, title keywords)
DOMAIN_ROLE_KEYWORDS = [
    (("technology", "software"), ("engineer", "developer", "software")),
    (("data",), ("data", "scientist", "analyst")),
]


def filter_jobs_by_domain(jobs: List[Dict[str, Any]], domain: Optional[str]) -> List[Dict[str, Any]]:
    """Keep jobs whose title fits the requested domain.

    An empty or ``all`` domain keeps everything, and so does a domain with no
    known role keywords.
    """
    if not domain or not domain.strip() or domain.strip().lower() == "all":
        return list(jobs)

    wanted = domain.strip().lower()
    for needles, keywords in DOMAIN_ROLE_KEYWORDS:
        if any(needle in wanted for needle in needles):
            return [job for job in jobs if any(k in job.get("title", "").lower() for k in keywords)]
    return list(jobs)


def fallback_matches(domain: Optional[str] = None) -> List[Dict[str, Any]]:
    return filter_jobs_by_domain(copy.deepcopy(FALLBACK_MATCHES), domain)


def fallback_recommended(domain: Optional[str] = None) -> List[Dict[str, Any]]:
    return filter_jobs_by_domain(copy.deepcopy(FALLBACK_RECOMMENDED), domain)


def fallback_statistics() -> Dict[str, Any]:
    return {"message": dict(FALLBACK_STATISTICS)}


def fallback_user_detail(display_id: str) -> Dict[str, Any]:
    return {
        "message": {
            "user_id": display_id,
            "name": "User",
            "email": f"{display_id}@example.com",
            "location": "Unknown",
            "skills": [],
            "experience": [],
            "domains": [],
            "jobPreferences": {
                "preferredIndustry": "Technology",
                "preferredLocation": "Remote",
                "salaryRange": "50000-80000",
            },
        },
        "status": "fallback",
    }
