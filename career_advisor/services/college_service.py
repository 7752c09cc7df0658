"""
College catalog search and per-user saved colleges.

Listing reads the colleges table and falls back to a bundled sample dataset
when the table is unavailable or empty.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.fallback import FALLBACK, PRIMARY, Sourced, store_failed
from career_advisor.core.retry import retry_with_backoff
from career_advisor.db.models.college import College
from career_advisor.db.models.saved_college import SavedCollege

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
SAVE_ATTEMPTS = 3
SAVE_RETRY_DELAY = 0.2

SAMPLE_COLLEGES: List[Dict[str, Any]] = [
    {
        "id": "1",
        "name": "Indian Institute of Technology Delhi",
        "shortName": "IIT-D",
        "location": "Hauz Khas, New Delhi",
        "state": "Delhi",
        "city": "New Delhi",
        "type": "Government",
        "established": 1961,
        "website": "https://home.iitd.ac.in",
        "courses": ["Computer Science", "Mechanical Engineering", "Electrical Engineering",
                    "Civil Engineering", "Chemical Engineering"],
        "rating": 4.8,
        "fees": "₹2.5L - 3L",
        "acceptanceRate": 2,
        "description": "IIT Delhi is one of the premier engineering institutions in India.",
    },
    {
        "id": "2",
        "name": "Birla Institute of Technology and Science",
        "shortName": "BITS",
        "location": "Pilani, Rajasthan",
        "state": "Rajasthan",
        "city": "Pilani",
        "type": "Private",
        "established": 1964,
        "website": "https://www.bits-pilani.ac.in",
        "courses": ["Computer Science", "Electronics", "Mechanical", "Chemical", "Biotechnology"],
        "rating": 4.6,
        "fees": "₹4L - 5L",
        "acceptanceRate": 8,
        "description": "BITS Pilani is a premier private technical and research university.",
    },
    {
        "id": "3",
        "name": "Delhi Technological University",
        "shortName": "DTU",
        "location": "Shahbad Daulatpur, Delhi",
        "state": "Delhi",
        "city": "New Delhi",
        "type": "Government",
        "established": 1941,
        "website": "http://www.dtu.ac.in",
        "courses": ["Computer Engineering", "Information Technology", "Electronics", "Mechanical", "Civil"],
        "rating": 4.4,
        "fees": "₹1.5L - 2L",
        "acceptanceRate": 12,
        "description": "Delhi Technological University is a premier engineering institution in Delhi.",
    },
]


def _paginate(items: List[Any], page: int, limit: int) -> List[Any]:
    start = (page - 1) * limit
    return items[start:start + limit]


def filter_sample_colleges(search: str = "", major: str = "", state: str = "") -> List[Dict[str, Any]]:
    colleges = SAMPLE_COLLEGES
    if search:
        term = search.lower()
        colleges = [
            c for c in colleges
            if term in c["name"].lower() or term in c["city"].lower() or term in c["state"].lower()
        ]
    if state:
        colleges = [c for c in colleges if c["state"] == state]
    if major:
        term = major.lower()
        colleges = [c for c in colleges if any(term in course.lower() for course in c["courses"])]
    return [dict(c) for c in colleges]


def _query_colleges(db: Session, search: str, major: str, state: str) -> List[College]:
    query = db.query(College)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            College.name.ilike(pattern),
            College.location.ilike(pattern),
            College.city.ilike(pattern),
        ))
    if state:
        query = query.filter(College.state == state)
    colleges = query.order_by(College.rating.desc()).all()
    if major:
        # courses is a JSON list; match in Python for portability across backends
        term = major.lower()
        colleges = [c for c in colleges if any(term in str(course).lower() for course in (c.courses or []))]
    return colleges


def search_colleges(
    db: Session,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    search: str = "",
    major: str = "",
    state: str = "",
) -> Tuple[Sourced[List[Dict[str, Any]]], int]:
    """
    Page through colleges ordered by rating.

    Returns:
        (Sourced page, total matches); source "primary" for the database,
        "fallback" for the bundled sample data
    """
    page = max(1, page)
    limit = max(1, limit)
    try:
        colleges = _query_colleges(db, search, major, state)
        if colleges:
            start = (page - 1) * limit
            page_items = [
                {**c.to_dict(), "ranking": start + index + 1}
                for index, c in enumerate(_paginate(colleges, page, limit))
            ]
            return Sourced(PRIMARY, page_items), len(colleges)
        logger.info("No colleges in database, using sample data")
    except SQLAlchemyError as e:
        store_failed(db, "colleges", e, "Colleges API")

    filtered = filter_sample_colleges(search, major, state)
    return Sourced(FALLBACK, _paginate(filtered, page, limit)), len(filtered)


def get_saved_colleges(db: Session, user_id: str) -> List[SavedCollege]:
    return (
        db.query(SavedCollege)
        .filter(SavedCollege.user_id == user_id)
        .order_by(SavedCollege.created_at.desc(), SavedCollege.id.desc())
        .all()
    )


def find_saved(db: Session, user_id: str, college_id: str) -> Optional[SavedCollege]:
    return db.query(SavedCollege).filter(
        SavedCollege.user_id == user_id,
        SavedCollege.college_id == college_id,
    ).first()


def save_college(
    db: Session,
    user_id: str,
    college_id: str,
    college_name: str,
    college_location: str,
    college_type: str,
    attempts: int = SAVE_ATTEMPTS,
    delay: float = SAVE_RETRY_DELAY,
) -> Tuple[SavedCollege, bool]:
    """
    Upsert a saved college on (user, college).

    The write is retried with a short delay. A unique-key conflict from a
    concurrent save resolves to the existing row.

    Returns:
        (row, created) where created is False if the pair was already saved

    Raises:
        SQLAlchemyError: The store kept failing after all attempts
    """
    existing = find_saved(db, user_id, college_id)
    if existing is not None:
        existing.college_name = college_name or existing.college_name
        existing.college_location = college_location or existing.college_location
        existing.college_type = college_type or existing.college_type
        db.commit()
        return existing, False

    def insert() -> SavedCollege:
        row = SavedCollege(
            user_id=user_id,
            college_id=college_id,
            college_name=college_name,
            college_location=college_location,
            college_type=college_type,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    try:
        row = retry_with_backoff(
            insert,
            attempts=attempts,
            delay=delay,
            retry_on=(SQLAlchemyError,),
            never_retry=(IntegrityError,),
            on_retry=lambda attempt, error: db.rollback(),
            operation_name="save college",
        )
    except IntegrityError:
        db.rollback()
        existing = find_saved(db, user_id, college_id)
        if existing is None:
            raise
        return existing, False
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(f"College saved: user_id={user_id}, college_id={college_id}")
    return row, True


def remove_college(db: Session, user_id: str, college_id: str) -> int:
    """Delete a saved college. Returns the number of rows removed (0 is not an error)."""
    deleted = db.query(SavedCollege).filter(
        SavedCollege.user_id == user_id,
        SavedCollege.college_id == college_id,
    ).delete()
    db.commit()
    logger.info(f"College removed: user_id={user_id}, college_id={college_id}, rows={deleted}")
    return deleted
