"""Tests for in-process metadata filtering and the local FAISS index."""
import pytest
import pytest_asyncio

from cv_search.exceptions import UpstreamUnavailableError
from cv_search.services.vector_db_service import FAISSVectorDB, matches_filter


class TestMatchesFilter:
    metadata = {
        "skills_normalized": ["react", "node.js"],
        "location_normalized": "lahore",
        "experience_years": 5,
    }

    def test_empty_filter_matches_everything(self):
        assert matches_filter(self.metadata, None)
        assert matches_filter(self.metadata, {})

    def test_in_on_list_field_matches_any_element(self):
        assert matches_filter(self.metadata, {"skills_normalized": {"$in": ["python", "react"]}})
        assert not matches_filter(self.metadata, {"skills_normalized": {"$in": ["python"]}})

    def test_eq_and_bare_value(self):
        assert matches_filter(self.metadata, {"location_normalized": {"$eq": "lahore"}})
        assert matches_filter(self.metadata, {"location_normalized": "lahore"})
        assert not matches_filter(self.metadata, {"location_normalized": "karachi"})

    def test_numeric_range(self):
        assert matches_filter(self.metadata, {"experience_years": {"$gte": 5, "$lte": 5}})
        assert not matches_filter(self.metadata, {"experience_years": {"$gt": 5}})
        assert not matches_filter({"experience_years": "5"}, {"experience_years": {"$gte": 1}})

    def test_or_of_skills(self):
        skills_filter = {"$or": [
            {"skills_normalized": {"$in": ["python"]}},
            {"skills_normalized": {"$in": ["node.js"]}},
        ]}
        assert matches_filter(self.metadata, skills_filter)

    def test_top_level_keys_are_anded(self):
        assert not matches_filter(self.metadata, {
            "location_normalized": {"$eq": "lahore"},
            "experience_years": {"$gte": 10},
        })

    def test_missing_field(self):
        assert not matches_filter({}, {"location_normalized": {"$eq": "lahore"}})
        assert not matches_filter({}, {"experience_years": {"$lte": 3}})
        assert matches_filter({}, {"location_normalized": {"$ne": "lahore"}})
        assert matches_filter({}, {"skills_normalized": {"$nin": ["react"]}})
        assert matches_filter({}, {"education": {"$exists": False}})
        assert not matches_filter({"education": None}, {"education": {"$exists": True}})

    def test_and(self):
        assert matches_filter(self.metadata, {"$and": [
            {"location_normalized": "lahore"},
            {"skills_normalized": {"$nin": ["java"]}},
        ]})

    def test_unknown_operator_rejected(self):
        with pytest.raises(ValueError):
            matches_filter(self.metadata, {"experience_years": {"$regex": "5"}})


@pytest_asyncio.fixture
async def faiss_db(tmp_path):
    db = FAISSVectorDB(index_path=str(tmp_path / "index.faiss"), dimension=4)
    await db.initialize()
    await db.upsert_vectors([
        {"id": "react-dev", "embedding": [1.0, 0.0, 0.0, 0.0],
         "metadata": {"skills_normalized": ["react"], "experience_years": 3}},
        {"id": "python-dev", "embedding": [0.0, 1.0, 0.0, 0.0],
         "metadata": {"skills_normalized": ["python"], "experience_years": 8}},
        {"id": "fullstack", "embedding": [0.9, 0.1, 0.0, 0.0],
         "metadata": {"skills_normalized": ["react", "python"], "experience_years": 5}},
    ])
    return db


class TestFAISSVectorDB:
    @pytest.mark.asyncio
    async def test_query_ranks_by_cosine_similarity(self, faiss_db):
        matches = await faiss_db.query_vectors([2.0, 0.0, 0.0, 0.0], top_k=2)

        assert [m["id"] for m in matches] == ["react-dev", "fullstack"]
        assert matches[0]["score"] == pytest.approx(1.0, abs=1e-5)

    @pytest.mark.asyncio
    async def test_filter_applied_before_top_k(self, faiss_db):
        matches = await faiss_db.query_vectors(
            [1.0, 0.0, 0.0, 0.0], top_k=1, filter_dict={"experience_years": {"$gte": 8}}
        )

        assert [m["id"] for m in matches] == ["python-dev"]

    @pytest.mark.asyncio
    async def test_upsert_replaces_existing_vector(self, faiss_db):
        await faiss_db.upsert_vectors([
            {"id": "react-dev", "embedding": [0.0, 0.0, 1.0, 0.0], "metadata": {"experience_years": 4}},
        ])

        matches = await faiss_db.query_vectors([0.0, 0.0, 1.0, 0.0], top_k=1)

        assert matches[0]["id"] == "react-dev"
        assert sorted(await faiss_db.list_ids()) == ["fullstack", "python-dev", "react-dev"]
        assert await faiss_db.fetch_by_id("react-dev") == {"experience_years": 4}

    @pytest.mark.asyncio
    async def test_delete_and_fetch(self, faiss_db):
        await faiss_db.delete_vectors(["python-dev", "unknown"])

        assert await faiss_db.fetch_by_id("python-dev") is None
        matches = await faiss_db.query_vectors([0.0, 1.0, 0.0, 0.0], top_k=5)
        assert "python-dev" not in [m["id"] for m in matches]

    @pytest.mark.asyncio
    async def test_update_metadata_persists(self, faiss_db, tmp_path):
        await faiss_db.update_metadata("fullstack", {"location_normalized": "lahore"})

        reloaded = FAISSVectorDB(index_path=str(tmp_path / "index.faiss"), dimension=4)
        await reloaded.initialize()

        assert (await reloaded.fetch_by_id("fullstack"))["location_normalized"] == "lahore"
        assert sorted(await reloaded.list_ids()) == ["fullstack", "python-dev", "react-dev"]

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, faiss_db):
        with pytest.raises(KeyError):
            await faiss_db.update_metadata("missing", {"location_normalized": "lahore"})

    @pytest.mark.asyncio
    async def test_wrong_dimension_is_an_upstream_failure(self, faiss_db):
        with pytest.raises(UpstreamUnavailableError):
            await faiss_db.query_vectors([1.0, 0.0], top_k=1)
