"""Technology-name normalization for job stacks and discovered skills.

Frameworks map to the GitHub language they are written in so a job asking
for "React" can search for JavaScript users.
"""

import re
from collections.abc import Iterable

# Languages GitHub's search accepts in a ``language:`` qualifier.
VALID_LANGS: frozenset[str] = frozenset({
    "javascript", "typescript", "python", "java", "php",
    "c", "cpp", "go", "ruby", "kotlin", "swift",
    "rust", "html", "css", "sql", "shell", "dart",
})

# Framework / tool → language
TECH_MAP: dict[str, str] = {
    "react": "javascript",
    "react.js": "javascript",
    "reactjs": "javascript",
    "react native": "javascript",
    "reactnative": "javascript",
    "next": "javascript",
    "next.js": "javascript",
    "vue": "javascript",
    "svelte": "javascript",
    "angular": "typescript",
    "node": "javascript",
    "nodejs": "javascript",
    "node.js": "javascript",
    "express": "javascript",
    "mongodb": "javascript",
    "prisma": "javascript",
    "firebase": "javascript",
    "tailwind": "css",
    "bootstrap": "css",
    "css3": "css",
    "html5": "html",
    "django": "python",
    "flask": "python",
}

# Alias → canonical tag
CANON: dict[str, str] = {
    "react.js": "react",
    "reactjs": "react",
    "react native": "react",
    "reactnative": "react",
    "next.js": "next",
    "node.js": "node",
    "nodejs": "node",
    "css3": "css",
    "html5": "html",
}

FRAMEWORK_KEYS: frozenset[str] = frozenset({
    "react", "next", "vue", "svelte", "angular",
    "node", "express",
    "mongodb", "prisma", "firebase",
    "tailwind", "bootstrap",
    "django", "flask",
})

TECH_KEYS: frozenset[str] = VALID_LANGS | FRAMEWORK_KEYS | frozenset(TECH_MAP)

FALLBACK_QUERY = "type:user repos:>5 followers:>20"

MAX_SKILL_TAGS = 5

_TOKEN_SPLIT = re.compile(r"[^a-z0-9.+#]+")


def normalize_tech_list(items: Iterable[str | None]) -> list[str]:
    """Map job stack entries to unique GitHub languages, dropping unknown ones."""
    output: list[str] = []
    for raw in items:
        if not raw:
            continue
        key = raw.lower().strip()
        lang = TECH_MAP.get(key) or (key if key in VALID_LANGS else None)
        if lang and lang not in output:
            output.append(lang)
    return output


def build_search_query(stack_must: list[str], stack_nice: list[str]) -> str:
    """Build a GitHub user-search query from a job's stacks."""
    langs = normalize_tech_list([*stack_must, *stack_nice])
    if not langs:
        return FALLBACK_QUERY
    return " ".join(f"language:{lang}" for lang in langs) + " type:user"


class _SkillBuckets:
    def __init__(self) -> None:
        self.frameworks: list[str] = []
        self.langs: list[str] = []

    @staticmethod
    def _add(bucket: list[str], value: str) -> None:
        if value not in bucket:
            bucket.append(value)

    def push(self, raw: str | None) -> None:
        if not raw:
            return
        token = raw.lower()
        token = CANON.get(token, token)

        if token in FRAMEWORK_KEYS:
            self._add(self.frameworks, token)
            if token in TECH_MAP:
                self._add(self.langs, TECH_MAP[token])
            return

        if token in VALID_LANGS:
            self._add(self.langs, token)
            return

        if token in TECH_MAP:
            self._add(self.langs, TECH_MAP[token])


def simplify_skills(
    items: Iterable[str | None],
    extras: Iterable[str | None] = (),
) -> list[str]:
    """Reduce free-text skills to at most five canonical tags.

    ``items`` may be sentences; they are tokenized and only known tech kept.
    ``extras`` are single hints (dominant language, required stack). Frameworks
    come first, then languages.
    """
    buckets = _SkillBuckets()

    for item in items:
        if not item:
            continue
        for piece in _TOKEN_SPLIT.split(item.lower()):
            if piece and (piece in TECH_KEYS or piece in CANON):
                buckets.push(piece)

    for extra in extras:
        buckets.push(extra)

    out: list[str] = list(buckets.frameworks[:MAX_SKILL_TAGS])
    for lang in buckets.langs:
        if len(out) >= MAX_SKILL_TAGS:
            break
        if lang not in out:
            out.append(lang)
    return out
