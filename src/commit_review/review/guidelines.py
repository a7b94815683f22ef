"""
Domain guideline registry.

Static guideline blocks are injected into the review prompt when a
predicate over the prepared diff matches. Predicates run once per review.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class GuidelineBlock:
    """A named block of review guidance with its selection predicate."""

    name: str
    title: str
    text: str
    applies: Callable[[str], bool]


def mentions_extensions(extensions: Iterable[str]) -> Callable[[str], bool]:
    """Predicate: the text mentions a file path with one of ``extensions``."""
    alternatives = "|".join(re.escape(ext.lstrip(".")) for ext in extensions)
    pattern = re.compile(rf"[\w./-]+\.(?:{alternatives})\b")
    return lambda text: pattern.search(text) is not None


def mentions_file_names(names: Iterable[str]) -> Callable[[str], bool]:
    """Predicate: the text mentions one of ``names`` as a path component."""
    alternatives = "|".join(re.escape(n) for n in names)
    pattern = re.compile(rf"(^|[\s/])(?:{alternatives})\b", re.MULTILINE)
    return lambda text: pattern.search(text) is not None


FRONTEND_GUIDELINES = GuidelineBlock(
    name="frontend",
    title="Frontend guidelines",
    text="""\
- Components must not mutate props or shared state directly.
- Effects and subscriptions must be cleaned up when a component unmounts.
- User-provided content must never reach innerHTML or equivalent sinks unescaped.
- Interactive elements need accessible names, keyboard support and focus handling.
- Avoid blocking work on the main thread; debounce expensive handlers.
- Keep styling scoped; flag global selectors that leak into other components.""",
    applies=mentions_extensions(
        ["ts", "tsx", "js", "jsx", "vue", "svelte", "css", "scss", "less", "html"]
    ),
)

PYTHON_GUIDELINES = GuidelineBlock(
    name="python",
    title="Python guidelines",
    text="""\
- No bare except clauses; exceptions must not be silently swallowed.
- Mutable default arguments are a defect.
- Files, sockets and locks must be released with context managers.
- Blocking I/O must not run inside async functions.
- Public functions keep their type hints accurate after the change.""",
    applies=mentions_extensions(["py", "pyi"]),
)

DATABASE_GUIDELINES = GuidelineBlock(
    name="database",
    title="Database guidelines",
    text="""\
- Queries must be parameterized; flag string-built SQL.
- Migrations must be reversible and safe on populated tables.
- New filters and joins on large tables need supporting indexes.""",
    applies=mentions_extensions(["sql"]),
)

CONTAINER_GUIDELINES = GuidelineBlock(
    name="containers",
    title="Container and deployment guidelines",
    text="""\
- Base images are pinned to a version or digest.
- Containers do not run as root unless justified.
- Secrets are never baked into images or compose files.""",
    applies=mentions_file_names(["Dockerfile", "docker-compose.yml", "docker-compose.yaml"]),
)

DEFAULT_GUIDELINES: tuple[GuidelineBlock, ...] = (
    FRONTEND_GUIDELINES,
    PYTHON_GUIDELINES,
    DATABASE_GUIDELINES,
    CONTAINER_GUIDELINES,
)


class GuidelineRegistry:
    """Ordered registry of guideline blocks."""

    def __init__(self, blocks: Iterable[GuidelineBlock] = DEFAULT_GUIDELINES):
        self._blocks: list[GuidelineBlock] = []
        for block in blocks:
            self.register(block)

    def register(self, block: GuidelineBlock) -> None:
        if any(b.name == block.name for b in self._blocks):
            raise ValueError(f"Guideline block already registered: {block.name}")
        self._blocks.append(block)

    @property
    def names(self) -> list[str]:
        return [b.name for b in self._blocks]

    def select(self, prepared_diff: str) -> list[GuidelineBlock]:
        """Blocks whose predicate matches the prepared diff, in registry order."""
        return [b for b in self._blocks if b.applies(prepared_diff)]
