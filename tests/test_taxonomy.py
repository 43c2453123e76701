"""Tests for the skill taxonomy: catalog invariants, normalization and term matching."""
import pytest

from cv_search.skills.taxonomy import (
    _squash,
    canonical_skills,
    iter_catalog,
    mentions,
    normalize_skill,
    variants_of,
)


class TestCatalogInvariants:
    def test_every_skill_lists_itself_as_a_variant(self):
        for skill_id in canonical_skills():
            assert skill_id in variants_of(skill_id)

    def test_no_variant_belongs_to_two_skills(self):
        owner = {}
        for skill_id, variants in iter_catalog():
            for variant in variants:
                assert variant not in owner, f"{variant!r} claimed by {owner.get(variant)!r} and {skill_id!r}"
                owner[variant] = skill_id

    def test_separator_free_spellings_do_not_collide(self):
        owner = {}
        for skill_id, variants in iter_catalog():
            for variant in variants:
                key = _squash(variant)
                assert owner.setdefault(key, skill_id) == skill_id, key

    def test_dotted_variants_get_spaced_and_joined_spellings(self):
        variants = variants_of("node.js")
        assert {"node.js", "node js", "nodejs", "node"} <= variants

    def test_unknown_skill_has_only_itself(self):
        assert variants_of("haskell") == frozenset({"haskell"})

    def test_website_development_is_a_variant_of_web_development(self):
        assert "website development" in variants_of("web development")
        assert "website development" not in canonical_skills()


class TestNormalizeSkill:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("React Native", "react"),
            ("  ReactJS ", "react"),
            ("NodeJS", "node.js"),
            ("Node JS", "node.js"),
            ("node.js", "node.js"),
            ("Scikit_Learn", "scikit-learn"),
            ("K8S", "kubernetes"),
            ("C#", "c#"),
            ("Website Development", "web development"),
            ("Digital Marketing", "social media marketing"),
            ("Haskell", "haskell"),
            ("  Functional   Programming ", "functional programming"),
        ],
    )
    def test_known_spellings(self, raw, expected):
        assert normalize_skill(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_blank_input_is_empty(self, raw):
        assert normalize_skill(raw) == ""

    def test_every_variant_normalizes_to_its_skill_regardless_of_case_and_padding(self):
        for skill_id, variants in iter_catalog():
            for variant in variants:
                assert normalize_skill(variant) == skill_id
                assert normalize_skill(f"  {variant.upper()}  ") == skill_id

    def test_normalization_is_idempotent(self):
        for raw in ["React Native", "NodeJS", "Haskell", "Website Dev", "ML"]:
            once = normalize_skill(raw)
            assert normalize_skill(once) == once


class TestMentions:
    def test_short_terms_must_stand_alone(self):
        assert mentions("senior go developer", "go")
        assert not mentions("google cloud engineer", "go")
        assert mentions("typescript, ts and node", "ts")
        assert not mentions("writes unit tests", "ts")

    def test_java_is_not_found_inside_javascript(self):
        assert not mentions("javascript developer", "java")
        assert mentions("java/spring developer", "java")

    def test_multi_word_terms_match_as_substrings(self):
        assert mentions("Senior React Native Developer", "react native")
        assert mentions("built apps in reactjs", "react")

    def test_symbol_terms(self):
        assert mentions("c# developer", "c#")
        assert mentions("c++, python", "c++")
        assert not mentions("asp.net developer", ".net")

    def test_c_is_not_found_inside_cpp_or_csharp(self):
        assert not mentions("c++ developer", "c")
        assert not mentions("c# developer", "c")
        assert mentions("embedded c, c++ and rust", "c")

    def test_less_than_is_not_the_stylesheet_language(self):
        assert not mentions("candidates with less than 5 years", "less")
        assert not mentions("less   than two years", "less")
        assert mentions("less and sass styling", "less")
        assert mentions("less, then sass", "less")

    def test_empty_inputs(self):
        assert not mentions("", "react")
        assert not mentions("react", "")
