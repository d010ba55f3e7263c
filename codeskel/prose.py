"""Boundary between the deterministic skeleton and generated prose.

Prose comes from an external async generator that receives the frozen
skeleton. Generation either completes or fails the run as a whole; partial
results are never merged.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

from codeskel.skeleton import SearchPattern, Skeleton

logger = logging.getLogger(__name__)

REPO_PLACEHOLDER = "${REPO}"
KEY_FILE_LIMIT = 10


class ProseGenerationError(Exception):
    """Prose generation did not complete."""


@dataclass(frozen=True)
class EntityRelationship:
    from_entity: str
    to_entity: str
    type: str = "depends"


@dataclass(frozen=True)
class ProseEnhancements:
    """Natural-language content written for a skeleton."""

    entity_descriptions: Mapping[str, str] = field(default_factory=dict)
    relationships: tuple[EntityRelationship, ...] = ()
    summary: str = ""
    when_to_use: tuple[str, ...] = ()


class ProseGenerator(Protocol):
    async def __call__(self, skeleton: Skeleton) -> ProseEnhancements: ...


async def generate_prose(
    skeleton: Skeleton,
    generator: ProseGenerator,
    *,
    timeout: float | None = None,
) -> ProseEnhancements:
    """Await the external generator once for ``skeleton``.

    Args:
        skeleton: The frozen skeleton passed to the generator.
        generator: Async callable producing prose.
        timeout: Seconds to wait before giving up; None waits indefinitely.

    Returns:
        The generated prose.

    Raises:
        ProseGenerationError: If the generator times out.
        asyncio.CancelledError: If the run is cancelled while waiting.
    """
    try:
        return await asyncio.wait_for(generator(skeleton), timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.debug("Prose generation for %s timed out after %ss", skeleton.name, timeout)
        raise ProseGenerationError(
            f"prose generation timed out after {timeout}s"
        ) from exc


@dataclass(frozen=True)
class MergedEntity:
    name: str
    path: str
    description: str


@dataclass(frozen=True)
class MergedQuickPath:
    path: str
    description: str


@dataclass(frozen=True)
class MergedSkill:
    """Skeleton structure combined with its prose."""

    name: str
    description: str
    quick_paths: tuple[MergedQuickPath, ...]
    search_patterns: tuple[SearchPattern, ...]
    entities: tuple[MergedEntity, ...]
    relationships: tuple[EntityRelationship, ...]
    key_files: tuple[str, ...]
    when_to_use: tuple[str, ...]


def merge_prose_into_skeleton(skeleton: Skeleton, prose: ProseEnhancements) -> MergedSkill:
    """Attach prose to the skeleton's structure.

    Paths are prefixed with ``${REPO}``. Entities without a description get a
    file-count fallback, and relationships naming unknown entities are
    dropped.
    """
    names = skeleton.entity_names
    return MergedSkill(
        name=skeleton.name,
        description=prose.summary,
        quick_paths=tuple(
            MergedQuickPath(path=f"{REPO_PLACEHOLDER}/{qp.path}", description=qp.reason)
            for qp in skeleton.quick_paths
        ),
        search_patterns=tuple(
            SearchPattern(
                pattern=sp.pattern,
                scope=f"{REPO_PLACEHOLDER}/{sp.scope}" if sp.scope else REPO_PLACEHOLDER,
            )
            for sp in skeleton.search_patterns
        ),
        entities=tuple(
            MergedEntity(
                name=entity.name,
                path=entity.path or ".",
                description=prose.entity_descriptions.get(entity.name)
                or f"Directory containing {len(entity.files)} files",
            )
            for entity in skeleton.entities
        ),
        relationships=tuple(
            rel
            for rel in prose.relationships
            if rel.from_entity in names and rel.to_entity in names
        ),
        key_files=tuple(qp.path for qp in skeleton.quick_paths[:KEY_FILE_LIMIT]),
        when_to_use=prose.when_to_use,
    )
