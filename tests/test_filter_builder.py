"""Tests for index metadata filter construction."""
from cv_search.ai_search.filter_builder import build_fallback_filter, build_pinecone_filter
from cv_search.models.search_models import QueryIntent


class TestBuildPineconeFilter:
    def test_general_intent_has_no_filter(self):
        assert build_pinecone_filter(QueryIntent()) is None

    def test_single_skill_uses_in(self):
        assert build_pinecone_filter(QueryIntent(skills=("react",))) == {
            "skills_normalized": {"$in": ["react"]}
        }

    def test_multiple_skills_are_ored(self):
        assert build_pinecone_filter(QueryIntent(skills=("react", "python"))) == {
            "$or": [
                {"skills_normalized": {"$in": ["react"]}},
                {"skills_normalized": {"$in": ["python"]}},
            ]
        }

    def test_location_matched_on_normalized_field_only(self):
        pinecone_filter = build_pinecone_filter(QueryIntent(location="  NYC "))
        assert pinecone_filter == {"location_normalized": {"$eq": "new york"}}

    def test_all_constraints_combined(self):
        intent = QueryIntent(
            skills=("react",),
            location="Lahore",
            education="BS Computer Science",
            min_experience=2,
            max_experience=6,
        )
        assert build_pinecone_filter(intent) == {
            "location_normalized": {"$eq": "lahore"},
            "education": {"$eq": "BS Computer Science"},
            "experience_years": {"$gte": 2, "$lte": 6},
            "skills_normalized": {"$in": ["react"]},
        }

    def test_open_ended_experience_range(self):
        assert build_pinecone_filter(QueryIntent(min_experience=0)) == {
            "experience_years": {"$gte": 0}
        }


class TestBuildFallbackFilter:
    def test_keeps_only_experience(self):
        intent = QueryIntent(skills=("react",), location="Lahore", education="BS", max_experience=4)
        assert build_fallback_filter(intent) == {"experience_years": {"$lte": 4}}

    def test_none_without_experience(self):
        assert build_fallback_filter(QueryIntent(skills=("react",), location="Lahore")) is None
