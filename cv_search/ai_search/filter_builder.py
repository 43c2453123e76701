"""Build the vector index metadata filter for a query intent."""
from typing import Any, Dict, Optional

from cv_search.models.search_models import QueryIntent


def _experience_range(intent: QueryIntent) -> Dict[str, int]:
    experience_range: Dict[str, int] = {}
    if intent.min_experience is not None:
        experience_range["$gte"] = intent.min_experience
    if intent.max_experience is not None:
        experience_range["$lte"] = intent.max_experience
    return experience_range


def build_pinecone_filter(intent: QueryIntent) -> Optional[Dict[str, Any]]:
    """
    Build a Pinecone metadata filter from the intent.

    Top-level keys are ANDed by Pinecone. Skills become one ``$in`` predicate
    per skill; two or more are combined under ``$or``:

        {"skills_normalized": {"$in": ["react"]}}
        {"$or": [{"skills_normalized": {"$in": ["react"]}},
                 {"skills_normalized": {"$in": ["python"]}}]}

    Location is matched on ``location_normalized`` only; the raw ``location``
    field is case-sensitive in the index and would only narrow the result.

    Returns None when the intent carries nothing to filter on, so the caller
    can omit the filter entirely.
    """
    pinecone_filter: Dict[str, Any] = {}

    location_normalized = intent.location_normalized
    if location_normalized:
        pinecone_filter["location_normalized"] = {"$eq": location_normalized}

    if intent.education:
        pinecone_filter["education"] = {"$eq": intent.education}

    experience_range = _experience_range(intent)
    if experience_range:
        pinecone_filter["experience_years"] = experience_range

    if len(intent.skills) == 1:
        pinecone_filter["skills_normalized"] = {"$in": [intent.skills[0]]}
    elif len(intent.skills) > 1:
        pinecone_filter["$or"] = [
            {"skills_normalized": {"$in": [skill]}} for skill in intent.skills
        ]

    return pinecone_filter or None


def build_fallback_filter(intent: QueryIntent) -> Optional[Dict[str, Any]]:
    """Fallback retrieval keeps only the experience range; other constraints are re-checked in memory."""
    experience_range = _experience_range(intent)
    if not experience_range:
        return None
    return {"experience_years": experience_range}
