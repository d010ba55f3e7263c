"""Tests for the prose boundary: generation and merging."""

from __future__ import annotations

import asyncio

import pytest

from codeskel.prose import (
    EntityRelationship,
    ProseEnhancements,
    ProseGenerationError,
    generate_prose,
    merge_prose_into_skeleton,
)
from codeskel.skeleton import (
    DetectedPatterns,
    QuickPath,
    SearchPattern,
    Skeleton,
    SkeletonEntity,
)


@pytest.fixture()
def skeleton() -> Skeleton:
    return Skeleton(
        name="demo",
        repo_path="/repos/demo",
        quick_paths=tuple(
            QuickPath(f"src/f{i}.ts", "core implementation") for i in range(12)
        ),
        search_patterns=(
            SearchPattern("buildIndex", "src"),
            SearchPattern("loadUser"),
        ),
        entities=(
            SkeletonEntity("src", "src", ("src/a.ts", "src/b.ts")),
            SkeletonEntity("root", "", ("index.ts",)),
        ),
        detected_patterns=DetectedPatterns("TypeScript", has_tests=True, has_docs=False),
    )


class TestGenerateProse:
    """Tests for generate_prose."""

    def test_returns_generator_output(self, skeleton: Skeleton) -> None:
        seen: list[Skeleton] = []

        async def generator(sk: Skeleton) -> ProseEnhancements:
            seen.append(sk)
            return ProseEnhancements(summary="A demo repository.")

        prose = asyncio.run(generate_prose(skeleton, generator, timeout=5))
        assert prose.summary == "A demo repository."
        assert seen == [skeleton]

    def test_timeout_raises(self, skeleton: Skeleton) -> None:
        async def slow(_sk: Skeleton) -> ProseEnhancements:
            await asyncio.sleep(10)
            return ProseEnhancements()

        with pytest.raises(ProseGenerationError, match="timed out"):
            asyncio.run(generate_prose(skeleton, slow, timeout=0.01))

    def test_generator_errors_propagate(self, skeleton: Skeleton) -> None:
        async def failing(_sk: Skeleton) -> ProseEnhancements:
            raise RuntimeError("model unavailable")

        with pytest.raises(RuntimeError, match="model unavailable"):
            asyncio.run(generate_prose(skeleton, failing))


class TestMergeProse:
    """Tests for merge_prose_into_skeleton."""

    def test_merge(self, skeleton: Skeleton) -> None:
        prose = ProseEnhancements(
            entity_descriptions={"src": "Application sources"},
            relationships=(
                EntityRelationship("root", "src", "imports"),
                EntityRelationship("src", "ghost"),
            ),
            summary="A demo repository.",
            when_to_use=("Editing demo",),
        )
        skill = merge_prose_into_skeleton(skeleton, prose)

        assert skill.description == "A demo repository."
        assert skill.quick_paths[0].path == "${REPO}/src/f0.ts"
        assert skill.quick_paths[0].description == "core implementation"
        assert [sp.scope for sp in skill.search_patterns] == ["${REPO}/src", "${REPO}"]
        assert skill.entities[0].description == "Application sources"
        assert skill.entities[1].description == "Directory containing 1 files"
        assert skill.entities[1].path == "."
        assert skill.relationships == (EntityRelationship("root", "src", "imports"),)
        assert len(skill.key_files) == 10
        assert skill.key_files[0] == "src/f0.ts"
        assert skill.when_to_use == ("Editing demo",)
