"""Tests for query intent extraction: skills, location, education and filter merging."""
import pytest

from cv_search.ai_search.ai_search_query_parser import QueryIntentExtractor
from cv_search.education.education_extractor import EducationExtractor
from cv_search.location.location_extractor import LocationExtractor
from cv_search.models.search_models import SearchFilters
from cv_search.skills.skills_extractor import SkillsExtractor


class TestSkillsExtractor:
    def test_react_native_collapses_to_react(self):
        assert SkillsExtractor().extract("React Native developer") == ["react"]

    def test_skills_reported_in_catalog_order(self):
        skills = SkillsExtractor().extract("Python and Django developer with AWS")
        assert skills == ["python", "django", "aws"]

    def test_variant_spelling_found(self):
        assert SkillsExtractor().extract("golang engineer") == ["go"]

    def test_no_skills_in_plain_text(self):
        assert SkillsExtractor().extract("hello there") == []

    @pytest.mark.parametrize("query, expected", [
        ("c++ developer", ["c++"]),
        ("c# developer", ["c#"]),
        ("embedded c programmer", ["c"]),
    ])
    def test_c_family_kept_apart(self, query, expected):
        assert SkillsExtractor().extract(query) == expected

    def test_comparative_less_is_not_a_skill(self):
        assert SkillsExtractor().extract("candidates with less than 5 years") == []
        assert SkillsExtractor().extract("less and sass styling") == ["sass", "less"]

    @pytest.mark.parametrize("query", ["", "   "])
    def test_blank_query(self, query):
        assert SkillsExtractor().extract(query) == []


class TestLocationExtractor:
    @pytest.mark.parametrize(
        "query, expected",
        [
            ("React developer in Lahore", "Lahore"),
            ("python developer based in new york", "New York"),
            ("candidates from karachi, with react", "Karachi"),
            ("java developers sialkot", "Sialkot"),
        ],
    )
    def test_location_found(self, query, expected):
        assert LocationExtractor().extract(query) == expected

    def test_experience_and_skill_phrases_are_not_places(self):
        assert LocationExtractor().extract("5 years of experience in react") is None

    def test_education_phrases_are_not_places(self):
        assert LocationExtractor().extract("bachelor of computer science") is None
        assert LocationExtractor().extract("developer with degree in information technology") is None

    def test_institution_capture_falls_back_to_known_city(self):
        assert LocationExtractor().extract("graduate from lahore university") == "Lahore"


class TestEducationExtractor:
    def test_degree_phrase_keeps_following_words(self):
        assert EducationExtractor().extract("bachelor of computer science") == "Of computer science"

    def test_degree_in_field(self):
        query = "developer with degree in information technology"
        assert EducationExtractor().extract(query) == "Information technology"

    def test_institution(self):
        assert EducationExtractor().extract("graduate from lahore university") == "Lahore university"

    def test_standalone_degree_keyword(self):
        assert EducationExtractor().extract("mba marketing manager") == "Mba"

    def test_degree_token_inside_skill_name_is_ignored(self):
        assert EducationExtractor().extract("ms sql developer") is None

    def test_nothing_found(self):
        assert EducationExtractor().extract("react developer") is None


class TestQueryIntentExtractor:
    def test_query_only(self):
        intent = QueryIntentExtractor().build_intent("React developer in Lahore")

        assert intent.skills == ("react",)
        assert intent.location == "Lahore"
        assert intent.location_normalized == "lahore"
        assert intent.education is None
        assert not intent.is_general_query

    def test_general_query(self):
        intent = QueryIntentExtractor().build_intent("hello there")

        assert intent.is_general_query
        assert intent.skills == ()

    def test_explicit_filters_override_location_and_education(self):
        filters = SearchFilters(location="Karachi", education="BS Computer Science")
        intent = QueryIntentExtractor().build_intent("React developer in Lahore", filters)

        assert intent.location == "Karachi"
        assert intent.education == "BS Computer Science"

    def test_skills_are_ordered_union(self):
        filters = SearchFilters(skills=["Python", "ReactJS", "  "])
        intent = QueryIntentExtractor().build_intent("react developer", filters)

        assert intent.skills == ("react", "python")

    def test_experience_and_sort_come_from_filters(self):
        filters = SearchFilters.model_validate(
            {"minExperience": 2, "maxExperience": 5, "sortBy": "experience", "sortOrder": "asc"}
        )
        intent = QueryIntentExtractor().build_intent("react developer with 10 years", filters)

        assert (intent.min_experience, intent.max_experience) == (2, 5)
        assert intent.sort_by == "experience"
        assert intent.sort_order == "asc"

    def test_experience_is_never_read_from_text(self):
        intent = QueryIntentExtractor().build_intent("react developer with 10 years")

        assert intent.min_experience is None
        assert intent.max_experience is None
