"""
Job-hunting helpers: resume analysis, resume-to-job matching, outreach drafts.

Each operation uses the AI provider when one is configured and falls back to
keyword rules or templates otherwise. Results are stored per user; a store
failure never fails the request.
"""
import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.errors import ValidationFailed
from career_advisor.core.fallback import FALLBACK, PRIMARY, Sourced, store_failed
from career_advisor.db.models.match_analysis import JobMatch
from career_advisor.db.models.outreach_message import OutreachDraft, OutreachType
from career_advisor.db.models.resume import Resume
from career_advisor.llm.parsing import ResponseParseError, parse_json_object
from career_advisor.llm.provider import LLMProvider
from career_advisor.llm.router import get_model_for_feature
from career_advisor.schemas.job_hunting import MatchAnalysis, OutreachDraftResponse, OutreachRequest, ResumeAnalysis
from career_advisor.services import activity_service

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a senior technical recruiter. Respond with valid JSON only."

PROMPT_TEXT_LIMIT = 3000

TECH_KEYWORDS = [
    "python", "java", "javascript", "typescript", "react", "node", "sql", "aws", "docker",
    "kubernetes", "git", "html", "css", "machine learning", "data analysis", "excel",
    "figma", "communication", "leadership", "project management",
]

_YEARS_RE = re.compile(r"(\d{1,2})\+?\s*(?:years?|yrs?)", re.IGNORECASE)


def _keywords_in(text: str) -> List[str]:
    lowered = text.lower()
    return [kw for kw in TECH_KEYWORDS if kw in lowered]


def experience_level(years: int) -> str:
    if years >= 8:
        return "senior"
    if years >= 3:
        return "mid"
    return "entry"


# ============================================
# Resume analysis
# ============================================

def _rule_based_resume(resume_text: str) -> ResumeAnalysis:
    skills = _keywords_in(resume_text)
    years = max((int(y) for y in _YEARS_RE.findall(resume_text)), default=0)
    strengths = ["Strong technical background"] if len(skills) >= 3 else ["Relevant experience"]
    if len(resume_text) > 1000:
        strengths.append("Comprehensive resume")
    improvements = ["Highlight quantifiable achievements"]
    if len(resume_text) < 500:
        improvements.append("Resume may be too brief")
    if len(skills) < 3:
        improvements.append("Add a dedicated skills section")
    return ResumeAnalysis(
        skills=skills,
        experience_years=years,
        experience_level=experience_level(years),
        summary=f"Resume mentions {len(skills)} recognized skills and about {years} years of experience.",
        strengths=strengths,
        improvements=improvements,
    )


def _ai_resume(resume_text: str, provider: LLMProvider) -> ResumeAnalysis:
    prompt = f"""Analyze this resume and return a JSON object with:
- skills: array of technical and soft skills
- experience_years: estimated years of experience (integer)
- experience_level: "entry", "mid" or "senior"
- summary: one or two sentence profile summary
- strengths: array of key strengths
- improvements: array of suggested resume improvements

Resume:
{resume_text[:PROMPT_TEXT_LIMIT]}

Return ONLY valid JSON."""
    text = provider.complete(
        SYSTEM_PROMPT, prompt,
        model=get_model_for_feature("resume_analysis"),
        temperature=0.7,
        max_tokens=1500,
    )
    result = parse_json_object(text)
    try:
        years = max(0, int(float(result.get("experience_years", 0))))
    except (TypeError, ValueError):
        years = 0
    return ResumeAnalysis(
        skills=[str(s) for s in result.get("skills") or []],
        experience_years=years,
        experience_level=str(result.get("experience_level") or experience_level(years)),
        summary=str(result.get("summary") or ""),
        strengths=[str(s) for s in result.get("strengths") or []],
        improvements=[str(s) for s in result.get("improvements") or []],
    )


def analyze_resume(
    db: Session,
    user_id: str,
    resume_text: Optional[str],
    file_name: Optional[str],
    provider: Optional[LLMProvider],
) -> Dict[str, Any]:
    """
    Extract skills and experience from resume text and store the resume.

    Raises:
        ValidationFailed: Empty resume text
    """
    if not resume_text or not resume_text.strip():
        raise ValidationFailed("Resume text is required")

    source = FALLBACK
    analysis = None
    if provider is not None:
        try:
            analysis = _ai_resume(resume_text, provider)
            source = PRIMARY
        except ResponseParseError as e:
            logger.error(f"Failed to parse AI resume analysis, using keyword rules. Raw response: {e.raw_text[:500]}")
        except Exception as e:
            logger.warning(f"AI resume analysis failed, using keyword rules: {e}")
    if analysis is None:
        logger.info("Using rule-based resume analysis")
        analysis = _rule_based_resume(resume_text)

    resume_id = None
    try:
        resume = Resume(
            user_id=user_id,
            file_name=file_name,
            content=resume_text,
            extracted_skills=analysis.skills,
            experience={
                "years": analysis.experience_years,
                "level": analysis.experience_level,
                "summary": analysis.summary,
            },
        )
        db.add(resume)
        db.commit()
        db.refresh(resume)
        resume_id = resume.id
    except SQLAlchemyError as e:
        store_failed(db, "job_hunting", e, "Resume analysis")

    activity_service.record(
        db, user_id, "job_analyzed", "Analyzed Resume",
        f"Analyzed resume: {file_name or 'resume'}",
        {"resume_id": resume_id, "skills_count": len(analysis.skills), "source": source},
    )
    return {"analysis": analysis.model_dump(), "resumeId": resume_id, "source": source}


# ============================================
# Job match
# ============================================

def _rule_based_match(resume_text: str, job_description: str) -> MatchAnalysis:
    resume_keywords = set(_keywords_in(resume_text))
    job_keywords = _keywords_in(job_description)
    matching = [kw for kw in job_keywords if kw in resume_keywords]
    missing = [kw for kw in job_keywords if kw not in resume_keywords]

    if not job_keywords:
        score = 70.0
    else:
        score = min(100.0, len(matching) / len(job_keywords) * 100)

    recommendations = (
        [f"Add experience with: {', '.join(missing[:3])}"] if missing else ["Resume looks well-matched"]
    )
    if score < 60:
        recommendations.append("Tailor your resume summary to the job requirements")
    return MatchAnalysis(
        match_score=round(score, 1),
        matching_skills=matching,
        missing_skills=missing[:10],
        recommendations=recommendations,
    )


def _ai_match(resume_text: str, job_description: str, provider: LLMProvider) -> MatchAnalysis:
    prompt = f"""Compare this resume with the job description. Return a JSON object with:
- match_score: number 0-100
- matching_skills: skills the candidate has that the job asks for
- missing_skills: skills the job asks for that the candidate lacks
- recommendations: actions that would improve the match

Resume:
{resume_text[:PROMPT_TEXT_LIMIT]}

Job Description:
{job_description[:PROMPT_TEXT_LIMIT]}

Return ONLY valid JSON."""
    text = provider.complete(
        SYSTEM_PROMPT, prompt,
        model=get_model_for_feature("job_match"),
        temperature=0.5,
        max_tokens=1500,
    )
    result = parse_json_object(text)
    try:
        score = max(0.0, min(100.0, float(result.get("match_score", 50))))
    except (TypeError, ValueError):
        score = 50.0
    return MatchAnalysis(
        match_score=score,
        matching_skills=[str(s) for s in result.get("matching_skills") or []],
        missing_skills=[str(s) for s in result.get("missing_skills") or []],
        recommendations=[str(s) for s in result.get("recommendations") or []],
    )


def match_resume(
    db: Session,
    user_id: str,
    resume_text: Optional[str],
    job_description: Optional[str],
    job_title: Optional[str],
    company: Optional[str],
    provider: Optional[LLMProvider],
) -> Dict[str, Any]:
    """
    Score a resume against a job description and store the match.

    Raises:
        ValidationFailed: Missing resume text or job description
    """
    if not resume_text or not job_description:
        raise ValidationFailed("Resume text and job description are required")

    source = FALLBACK
    match = None
    if provider is not None:
        try:
            match = _ai_match(resume_text, job_description, provider)
            source = PRIMARY
        except ResponseParseError as e:
            logger.error(f"Failed to parse AI job match, using keyword rules. Raw response: {e.raw_text[:500]}")
        except Exception as e:
            logger.warning(f"AI job match failed, using keyword rules: {e}")
    if match is None:
        logger.info("Using rule-based job match analysis")
        match = _rule_based_match(resume_text, job_description)

    job_match_id = None
    try:
        row = JobMatch(
            user_id=user_id,
            job_title=job_title or "Unknown Position",
            company=company or "Unknown Company",
            job_description=job_description,
            match_score=match.match_score,
            matching_skills=match.matching_skills,
            missing_skills=match.missing_skills,
            recommendations=match.recommendations,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        job_match_id = row.id
    except SQLAlchemyError as e:
        store_failed(db, "job_hunting", e, "Job match")

    activity_service.record(
        db, user_id, "job_analyzed", "Job Match Analysis",
        f"Analyzed match for {job_title or 'position'} at {company or 'company'}",
        {
            "job_match_id": job_match_id,
            "match_score": match.match_score,
            "matching_skills_count": len(match.matching_skills),
            "missing_skills_count": len(match.missing_skills),
        },
    )
    return {"matchResult": match.model_dump(), "jobMatchId": job_match_id, "source": source}


def list_matches(db: Session, user_id: str, limit: int = 20) -> List[JobMatch]:
    return (
        db.query(JobMatch)
        .filter(JobMatch.user_id == user_id)
        .order_by(JobMatch.created_at.desc(), JobMatch.id.desc())
        .limit(limit)
        .all()
    )


# ============================================
# Outreach drafts
# ============================================

def _template_outreach(request: OutreachRequest) -> OutreachDraftResponse:
    title = request.jobTitle or "position"
    company = request.company or "your company"
    recipient = request.recipientName or "Hiring Manager"
    skills = ", ".join(request.userSkills[:3])
    skills_line = f" My experience with {skills} aligns closely with the role." if skills else ""

    if request.type == OutreachType.COVER_LETTER.value:
        return OutreachDraftResponse(
            type=request.type,
            subject=f"Application for {title}",
            content=(
                f"Dear {recipient},\n\n"
                f"I am writing to express my strong interest in the {title} role at {company}.{skills_line}\n\n"
                "I am excited about the possibility of contributing to your team and would welcome the "
                "opportunity to discuss how my background can benefit your organization.\n\n"
                "Thank you for your time and consideration.\n\nBest regards,\n[Your Name]"
            ),
        )
    if request.type == OutreachType.LINKEDIN_MESSAGE.value:
        return OutreachDraftResponse(
            type=request.type,
            subject=None,
            content=(
                f"Hi {request.recipientName or '[Name]'},\n\n"
                f"I came across the {title} opening at {company} and would love to connect.{skills_line} "
                "Would you be open to a brief conversation about the team?\n\nThanks!\n[Your Name]"
            ),
        )
    return OutreachDraftResponse(
        type=OutreachType.EMAIL.value,
        subject=f"Interest in the {title} opportunity at {company}",
        content=(
            f"Dear {recipient},\n\n"
            f"I hope this message finds you well. I am reaching out about the {title} opening at {company}.{skills_line}\n\n"
            "I would appreciate the chance to discuss how I could contribute. I am happy to work around "
            "your schedule.\n\nBest regards,\n[Your Name]"
        ),
    )


def _ai_outreach(request: OutreachRequest, provider: LLMProvider) -> OutreachDraftResponse:
    prompt = f"""Write a {request.type.replace('-', ' ')} for a job application.

Job Title: {request.jobTitle or 'Not specified'}
Company: {request.company or 'Not specified'}
Recipient: {request.recipientName or 'Hiring Manager'}
Candidate Skills: {', '.join(request.userSkills) or 'Not specified'}

Return a JSON object with:
- subject: subject line (null for LinkedIn messages)
- content: the full message text

Keep it professional and concise. Return ONLY valid JSON."""
    text = provider.complete(
        SYSTEM_PROMPT, prompt,
        model=get_model_for_feature("outreach"),
        temperature=0.8,
        max_tokens=1500,
    )
    result = parse_json_object(text)
    content = str(result.get("content") or "").strip()
    if not content:
        raise ResponseParseError("AI outreach has no content", text)
    subject = result.get("subject")
    return OutreachDraftResponse(type=request.type, subject=str(subject) if subject else None, content=content)


def generate_outreach(
    db: Session,
    user_id: str,
    request: OutreachRequest,
    provider: Optional[LLMProvider],
) -> Dict[str, Any]:
    """
    Draft an email, cover letter or LinkedIn message and store it.

    Raises:
        ValidationFailed: Unknown draft type
    """
    valid_types = [t.value for t in OutreachType]
    if request.type not in valid_types:
        raise ValidationFailed(f"Invalid outreach type. Must be one of: {', '.join(valid_types)}")

    source = FALLBACK
    draft = None
    if provider is not None:
        try:
            draft = _ai_outreach(request, provider)
            source = PRIMARY
        except ResponseParseError as e:
            logger.error(f"Failed to parse AI outreach, using template. Raw response: {e.raw_text[:500]}")
        except Exception as e:
            logger.warning(f"AI outreach failed, using template: {e}")
    if draft is None:
        logger.info(f"Using template outreach for type: {request.type}")
        draft = _template_outreach(request)

    draft_id = None
    try:
        job_match_id = None
        if request.jobMatchId is not None:
            owned = db.query(JobMatch.id).filter(
                JobMatch.id == request.jobMatchId, JobMatch.user_id == user_id
            ).scalar()
            job_match_id = owned
        row = OutreachDraft(
            user_id=user_id,
            job_match_id=job_match_id,
            draft_type=draft.type,
            subject=draft.subject,
            content=draft.content,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        draft_id = row.id
    except SQLAlchemyError as e:
        store_failed(db, "job_hunting", e, "Outreach drafts")

    return {"draft": draft.model_dump(), "draftId": draft_id, "source": source}
