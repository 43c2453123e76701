"""Service for writing candidate records to the vector index with normalized metadata."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from cv_search.models.candidate_models import CandidateRecord, StoredFileLocation
from cv_search.services.embedding_service import EmbeddingService
from cv_search.services.vector_db_service import VectorDBService
from cv_search.utils.cleaning import (
    ensure_string_list,
    format_education,
    normalize_location,
    normalize_skill_list,
    normalize_text,
    parse_timestamp,
)
from cv_search.utils.logging import get_logger

logger = get_logger(__name__)

# Pinecone caps metadata at 40KB per vector
MAX_METADATA_TEXT_CHARS = 30000

# Leading characters of full_text compared when grouping duplicate uploads
DUPLICATE_TEXT_PREFIX_CHARS = 100

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def build_index_metadata(record: CandidateRecord) -> Dict[str, Any]:
    """
    Build the metadata stored next to a candidate's embedding.

    Normalized fields are derived here and only here. Absent values are
    omitted rather than stored as null, because Pinecone filters treat null
    as unequal to everything.
    """
    upload_date = record.upload_date or datetime.now(timezone.utc)
    if upload_date.tzinfo is None:
        upload_date = upload_date.replace(tzinfo=timezone.utc)

    location = normalize_text(record.location)

    metadata: Dict[str, Any] = {
        "cv_id": record.cv_id,
        "filename": record.filename,
        "full_text": (record.full_text or "")[:MAX_METADATA_TEXT_CHARS],
        "upload_date": upload_date.isoformat(),
        "file_size": record.file_size,
        "stored_file_path": record.stored_file_path,
        "stored_filename": record.stored_filename,
        "full_name": normalize_text(record.full_name),
        "email": record.email.strip().lower() if record.email and record.email.strip() else None,
        "phone": normalize_text(record.phone),
        "skills": ensure_string_list(record.skills),
        "skills_normalized": normalize_skill_list(record.skills),
        "experience_years": record.experience_years,
        "education": format_education(record.education),
        "location": location,
        "location_normalized": normalize_location(location) or None,
    }
    return {key: value for key, value in metadata.items() if value is not None}


def renormalize_metadata(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recompute the derived fields of already stored metadata.

    Returns only the fields whose value changes, so an empty dict means the
    record is already up to date.
    """
    recomputed: Dict[str, Any] = {}

    skills = ensure_string_list(metadata.get("skills"))
    if skills is not None:
        recomputed["skills"] = skills
        skills_normalized = normalize_skill_list(skills)
        if skills_normalized is not None:
            recomputed["skills_normalized"] = skills_normalized

    education = format_education(metadata.get("education"))
    if education is not None:
        recomputed["education"] = education

    location_normalized = normalize_location(metadata.get("location"))
    if location_normalized:
        recomputed["location_normalized"] = location_normalized

    return {key: value for key, value in recomputed.items() if metadata.get(key) != value}


def duplicate_key(metadata: Dict[str, Any]) -> Optional[Tuple[str, str]]:
    """Grouping key for repeated uploads, or None when the record has no text to compare."""
    full_text = metadata.get("full_text")
    if not isinstance(full_text, str) or not full_text.strip():
        return None
    filename = metadata.get("filename")
    filename = filename.strip().lower() if isinstance(filename, str) else ""
    return filename, full_text[:DUPLICATE_TEXT_PREFIX_CHARS].lower()


class CandidateIndexingService:
    """Write path: normalize candidate metadata and upsert it with the embedding."""

    def __init__(self, vector_db: VectorDBService, embedding_service: Optional[EmbeddingService] = None):
        self.vector_db = vector_db
        self.embedding_service = embedding_service or EmbeddingService()

    async def index_candidate(self, record: CandidateRecord) -> Dict[str, Any]:
        """Index one candidate and return the metadata that was stored."""
        embedding = record.embedding
        if not embedding:
            embedding = await self.embedding_service.generate_embedding(record.full_text)

        metadata = build_index_metadata(record)
        await self.vector_db.upsert_vectors([{
            "id": record.cv_id,
            "embedding": embedding,
            "metadata": metadata,
        }])

        logger.info(
            f"Indexed candidate {record.cv_id}",
            extra={
                "cv_id": record.cv_id,
                "skill_count": len(metadata.get("skills_normalized", [])),
                "has_location": "location_normalized" in metadata,
                "has_education": "education" in metadata,
            }
        )
        return metadata

    async def index_candidates(self, records: List[CandidateRecord]) -> Dict[str, Any]:
        """
        Index several candidates, continuing past individual failures.

        Returns:
            {"indexed_count": int, "failed_count": int,
             "processed_ids": List[str], "failed_ids": List[str]}
        """
        processed_ids: List[str] = []
        failed_ids: List[str] = []

        for record in records:
            try:
                await self.index_candidate(record)
                processed_ids.append(record.cv_id)
            except Exception as e:
                logger.error(
                    f"Failed to index candidate {record.cv_id}: {e}",
                    extra={"cv_id": record.cv_id, "error": str(e)}
                )
                failed_ids.append(record.cv_id)

        return {
            "indexed_count": len(processed_ids),
            "failed_count": len(failed_ids),
            "processed_ids": processed_ids,
            "failed_ids": failed_ids,
        }

    async def get_candidate(self, cv_id: str) -> Optional[Dict[str, Any]]:
        """Stored metadata for one candidate, or None when unknown."""
        return await self.vector_db.fetch_by_id(cv_id)

    async def get_stored_file_path(self, cv_id: str) -> Optional[StoredFileLocation]:
        """Where the original file of a candidate is stored, or None when unknown."""
        metadata = await self.vector_db.fetch_by_id(cv_id)
        if not metadata or not metadata.get("stored_file_path"):
            logger.warning(f"No stored file for candidate {cv_id}", extra={"cv_id": cv_id})
            return None
        return StoredFileLocation(
            cv_id=cv_id,
            stored_file_path=metadata["stored_file_path"],
            stored_filename=metadata.get("stored_filename"),
        )

    async def reindex_metadata(self, dry_run: bool = False, limit: Optional[int] = None) -> Dict[str, Any]:
        """
        Re-apply metadata normalization to every stored candidate.

        Returns:
            {"scanned_count": int, "updated_count": int, "failed_count": int,
             "updated_ids": List[str], "failed_ids": List[str]}
        """
        ids = await self.vector_db.list_ids()
        if limit is not None:
            ids = ids[:limit]

        updated_ids: List[str] = []
        failed_ids: List[str] = []

        for cv_id in ids:
            try:
                metadata = await self.vector_db.fetch_by_id(cv_id)
                if metadata is None:
                    continue
                changes = renormalize_metadata(metadata)
                if not changes:
                    continue
                if not dry_run:
                    await self.vector_db.update_metadata(cv_id, changes)
                updated_ids.append(cv_id)
                logger.info(
                    f"{'Would update' if dry_run else 'Updated'} candidate {cv_id}",
                    extra={"cv_id": cv_id, "fields": sorted(changes)}
                )
            except Exception as e:
                logger.error(
                    f"Failed to reindex candidate {cv_id}: {e}",
                    extra={"cv_id": cv_id, "error": str(e)}
                )
                failed_ids.append(cv_id)

        return {
            "scanned_count": len(ids),
            "updated_count": len(updated_ids),
            "failed_count": len(failed_ids),
            "updated_ids": updated_ids,
            "failed_ids": failed_ids,
        }

    async def dedupe_candidates(self, dry_run: bool = False, limit: Optional[int] = None) -> Dict[str, Any]:
        """
        Delete repeated uploads of the same CV, keeping the newest copy.

        Two records are duplicates when their filenames match (ignoring case)
        and the first characters of their full text match. Records without
        full text are never grouped. Within a group the latest upload_date
        wins; a missing date counts as oldest and ties keep the first listed.

        Returns:
            {"scanned_count": int, "duplicate_groups": int, "removed_count": int,
             "failed_count": int, "kept_ids": List[str], "removed_ids": List[str],
             "failed_ids": List[str]}
        """
        ids = await self.vector_db.list_ids()
        if limit is not None:
            ids = ids[:limit]

        groups: Dict[Tuple[str, str], List[Tuple[str, datetime]]] = {}
        for cv_id in ids:
            metadata = await self.vector_db.fetch_by_id(cv_id)
            if not metadata:
                continue
            key = duplicate_key(metadata)
            if key is None:
                continue
            uploaded = parse_timestamp(metadata.get("upload_date")) or EPOCH
            groups.setdefault(key, []).append((cv_id, uploaded))

        kept_ids: List[str] = []
        removed_ids: List[str] = []
        failed_ids: List[str] = []
        duplicate_groups = 0

        for members in groups.values():
            if len(members) < 2:
                continue
            duplicate_groups += 1
            # max() keeps the first of equal dates
            keep_id = max(members, key=lambda member: member[1])[0]
            stale_ids = [cv_id for cv_id, _ in members if cv_id != keep_id]
            kept_ids.append(keep_id)

            logger.info(
                f"{'Would remove' if dry_run else 'Removing'} {len(stale_ids)} duplicate(s) of {keep_id}",
                extra={"cv_id": keep_id, "duplicate_ids": stale_ids}
            )
            if dry_run:
                removed_ids.extend(stale_ids)
                continue
            try:
                await self.vector_db.delete_vectors(stale_ids)
                removed_ids.extend(stale_ids)
            except Exception as e:
                logger.error(
                    f"Failed to remove duplicates of {keep_id}: {e}",
                    extra={"cv_id": keep_id, "error": str(e)}
                )
                failed_ids.extend(stale_ids)

        return {
            "scanned_count": len(ids),
            "duplicate_groups": duplicate_groups,
            "removed_count": len(removed_ids),
            "failed_count": len(failed_ids),
            "kept_ids": kept_ids,
            "removed_ids": removed_ids,
            "failed_ids": failed_ids,
        }
