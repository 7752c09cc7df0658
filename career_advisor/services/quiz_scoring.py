"""
Rule-based career scoring for quiz submissions.

Matches a user's interests and skills against a fixed catalog of career
profiles. Used directly when AI analysis is unavailable.
"""
import random
from typing import Any, Dict, List, Optional

BASE_SCORE = 50
INTEREST_POINTS = 15
SKILL_POINTS = 10
BEGINNER_BONUS_MAX = 10

CAREER_CATALOG: List[Dict[str, Any]] = [
    {
        "id": "software_dev",
        "title": "Software Developer",
        "keywords": ["programming", "technology", "coding", "computers", "problem-solving"],
        "skills": ["Programming", "Logic", "Problem Solving"],
        "industries": ["Technology", "Finance", "Healthcare"],
        "salaryRange": "$60,000 - $120,000",
        "outlook": "Excellent (22% growth)",
        "description": "Build applications and websites using various programming languages",
    },
    {
        "id": "data_analyst",
        "title": "Data Analyst",
        "keywords": ["data", "analysis", "statistics", "math", "research"],
        "skills": ["Data Analysis", "Statistics", "Critical Thinking"],
        "industries": ["Business", "Healthcare", "Marketing"],
        "salaryRange": "$50,000 - $90,000",
        "outlook": "Very Good (8% growth)",
        "description": "Analyze data to help businesses make informed decisions",
    },
    {
        "id": "ux_designer",
        "title": "UX Designer",
        "keywords": ["design", "user", "creative", "interface", "usability"],
        "skills": ["Design", "User Research", "Creativity"],
        "industries": ["Technology", "Media", "E-commerce"],
        "salaryRange": "$55,000 - $110,000",
        "outlook": "Good (5% growth)",
        "description": "Design user experiences for digital products",
    },
    {
        "id": "digital_marketer",
        "title": "Digital Marketing Specialist",
        "keywords": ["marketing", "social media", "advertising", "communication"],
        "skills": ["Communication", "Creativity", "Analytics"],
        "industries": ["Marketing", "Retail", "Media"],
        "salaryRange": "$40,000 - $80,000",
        "outlook": "Good (6% growth)",
        "description": "Develop and execute digital marketing campaigns",
    },
]


def _overlaps(a: str, b: str) -> bool:
    """Case-insensitive substring match in either direction."""
    a, b = a.lower(), b.lower()
    return bool(a) and bool(b) and (a in b or b in a)


def _as_strings(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    return [str(v) for v in values if isinstance(v, (str, int, float)) and str(v).strip()]


def score_career(
    career: Dict[str, Any],
    interests: List[str],
    skills: List[str],
    experience: str,
    rng: random.Random,
) -> int:
    score = float(BASE_SCORE)
    for interest in interests:
        if any(_overlaps(keyword, interest) for keyword in career["keywords"]):
            score += INTEREST_POINTS
    for skill in skills:
        if any(_overlaps(career_skill, skill) for career_skill in career["skills"]):
            score += SKILL_POINTS
    if experience == "beginner":
        score += rng.random() * BEGINNER_BONUS_MAX
    return round(max(0.0, min(100.0, score)))


def score(
    responses: Optional[List[Any]],
    personal_info: Optional[Dict[str, Any]],
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """
    Rank catalog careers for a quiz submission.

    Args:
        responses: Raw quiz answers (kept for the record, not scored)
        personal_info: interests, skills, experience ("beginner" gets a small random bonus)
        rng: Random source for the beginner bonus

    Returns:
        primaryCareer, alternativeCareers (next three), skillGaps, nextSteps
    """
    rng = rng or random.Random()
    info = personal_info if isinstance(personal_info, dict) else {}
    interests = _as_strings(info.get("interests"))
    skills = _as_strings(info.get("skills"))
    experience = str(info.get("experience") or "beginner")

    matches = []
    for career in CAREER_CATALOG:
        entry = {key: value for key, value in career.items() if key not in ("keywords", "id")}
        entry["match"] = score_career(career, interests, skills, experience, rng)
        matches.append(entry)

    # Stable sort keeps catalog order for ties
    matches.sort(key=lambda c: c["match"], reverse=True)
    primary = matches[0]
    primary_skills = primary["skills"]
    second_skill = primary_skills[1] if len(primary_skills) > 1 else "Communication"

    return {
        "primaryCareer": primary,
        "alternativeCareers": matches[1:4],
        "skillGaps": [
            {
                "skill": f"Advanced {primary_skills[0]}",
                "priority": "high",
                "description": f"Develop deeper expertise in {primary_skills[0].lower()}",
            },
            {
                "skill": second_skill,
                "priority": "medium",
                "description": f"Improve your {second_skill.lower()} abilities",
            },
        ],
        "nextSteps": [
            f"Research {primary['title'].lower()} roles in your area",
            f"Take courses in {primary_skills[0].lower()}",
            "Build a portfolio showcasing your skills",
            "Network with professionals in the field",
            "Consider internships or entry-level positions",
        ],
    }


# Returned when both AI analysis and rule-based scoring fail
DEFAULT_RECOMMENDATIONS: Dict[str, Any] = {
    "primaryCareer": {
        "title": "Software Developer",
        "match": 85,
        "description": "Build applications and websites using various programming languages",
        "skills": ["Programming", "Problem Solving", "Logic"],
        "industries": ["Technology", "Finance", "Healthcare"],
        "salaryRange": "$60,000 - $120,000",
        "outlook": "Excellent (22% growth)",
    },
    "alternativeCareers": [
        {
            "title": "Data Analyst",
            "match": 78,
            "description": "Analyze data to help businesses make informed decisions",
            "skills": ["Data Analysis", "Statistics", "Critical Thinking"],
        },
        {
            "title": "UX Designer",
            "match": 72,
            "description": "Design user experiences for digital products",
            "skills": ["Design", "User Research", "Creativity"],
        },
    ],
    "skillGaps": [
        {"skill": "Advanced Programming", "priority": "high", "description": "Learn frameworks like React or Python"},
        {"skill": "Database Management", "priority": "medium", "description": "Understanding of SQL and database design"},
    ],
    "nextSteps": [
        "Complete online programming courses",
        "Build personal projects for portfolio",
        "Consider internship or entry-level position",
        "Network with professionals in the field",
    ],
}
