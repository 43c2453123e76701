"""Canonical skill taxonomy shared by query parsing, post-filtering and indexing.

Every canonical skill id maps to the surface spellings recruiters and CVs use
for it. Lookups fold case and whitespace first and then retry with separators
(dots, hyphens, underscores, spaces) removed, so "Node.js", "nodejs",
"node js" and "NodeJS" all resolve to the same id without listing each case
variant by hand.

Open question resolved here: "web development" is the canonical id and
"website development" is one of its variants.
"""
import re
from functools import lru_cache
from typing import Dict, FrozenSet, List

# canonical id -> extra variants (the id itself is always a variant)
SKILL_CATALOG: Dict[str, List[str]] = {
    # Programming Languages
    "python": ["py"],
    "javascript": ["js", "ecmascript"],
    "typescript": ["ts"],
    "java": ["j2ee", "j2se", "core java"],
    "c#": ["csharp", "c sharp", "dotnet", ".net"],
    "c++": ["cpp", "c plus plus"],
    "c": ["c programming", "c language"],
    "go": ["golang"],
    "rust": [],
    "swift": [],
    "kotlin": [],
    "scala": [],
    "php": ["hypertext preprocessor"],
    "ruby": ["ruby on rails", "rails"],
    "perl": [],
    "r": ["r programming", "r language"],
    "matlab": [],
    "julia": [],

    # Web Technologies
    "html": ["html5", "hypertext markup language"],
    "css": ["css3", "cascading style sheets"],
    "node.js": ["nodejs", "node js", "node"],
    "react": ["reactjs", "react.js", "react native"],
    "angular": ["angularjs", "angular.js"],
    "vue": ["vue.js", "vuejs"],
    "svelte": [],
    "next.js": ["nextjs"],
    "nuxt.js": ["nuxtjs"],
    "express": ["express.js", "expressjs"],
    "fastify": [],
    "koa": [],
    "hapi": [],

    # Backend Frameworks
    "django": ["django framework"],
    "flask": ["flask framework"],
    "fastapi": ["fast api"],
    "spring": ["spring framework"],
    "spring boot": ["springboot"],
    "laravel": [],
    "symfony": [],
    "codeigniter": [],
    "asp.net": ["asp", "aspnet"],

    # Databases
    "sql": ["structured query language"],
    "mysql": ["my sql"],
    "postgresql": ["postgres", "psql", "postgre sql"],
    "mongodb": ["mongo", "mongo db"],
    "redis": [],
    "elasticsearch": ["elastic search"],
    "cassandra": [],
    "couchdb": ["couch db"],
    "neo4j": ["neo 4j"],
    "sqlite": ["sql lite"],
    "oracle": ["oracle db", "oracle database"],
    "sql server": ["mssql", "ms sql"],

    # Cloud & DevOps
    "aws": ["amazon web services", "amazon aws"],
    "azure": ["microsoft azure", "azure cloud"],
    "gcp": ["google cloud", "google cloud platform"],
    "docker": ["docker container"],
    "kubernetes": ["k8s", "kube"],
    "terraform": [],
    "ansible": [],
    "jenkins": [],
    "gitlab": ["git lab"],
    "github": ["git hub"],
    "git": ["git version control"],
    "ci": ["continuous integration"],
    "cd": ["continuous deployment", "continuous delivery"],
    "devops": ["dev ops", "development operations"],

    # Data Science & ML
    "machine learning": ["ml", "machine learning algorithms"],
    "artificial intelligence": ["ai", "artificial intelligence algorithms"],
    "natural language processing": ["nlp", "natural language processing algorithms"],
    "deep learning": ["deep learning algorithms"],
    "neural networks": ["neural network"],
    "pandas": ["pandas library"],
    "numpy": ["numpy library"],
    "scikit-learn": ["sklearn", "scikit"],
    "tensorflow": ["tensor flow"],
    "pytorch": ["py torch", "torch"],
    "keras": [],
    "opencv": ["open cv"],
    "computer vision": [],
    "data engineering": ["data engineer", "etl", "data pipeline"],

    # Frontend & UI
    "redux": ["redux toolkit"],
    "mobx": [],
    "tailwind css": ["tailwind", "tailwindcss"],
    "bootstrap": ["bootstrap framework"],
    "material ui": ["material-ui", "mui"],
    "sass": ["scss"],
    "less": [],
    "webpack": [],
    "vite": [],
    "rollup": [],
    "babel": [],

    # Testing & Quality
    "jest": ["jest testing"],
    "mocha": [],
    "chai": [],
    "cypress": ["cypress testing"],
    "playwright": [],
    "selenium": ["selenium webdriver"],
    "unit testing": ["unit test", "unit tests"],
    "integration testing": ["integration test", "integration tests"],
    "end to end testing": ["end-to-end testing", "e2e testing", "e2e test"],

    # Other Technologies
    "graphql": ["graph ql"],
    "rest": ["rest api", "restful", "restful api"],
    "soap": ["soap api"],
    "microservices": ["microservice", "micro service", "micro services"],
    "api development": ["api dev", "api design"],
    "web development": ["web dev", "website development", "website dev"],
    "mobile development": ["mobile dev", "mobile app development"],
    "desktop development": ["desktop app development"],
    "game development": ["game dev", "game programming"],
    "blockchain": ["block chain", "ethereum"],
    "cybersecurity": ["cyber security", "information security"],
    "agile": ["agile methodology"],
    "scrum": ["scrum methodology"],
    "kanban": ["kanban methodology"],
    "project management": ["project manager"],
    "team leadership": ["team lead", "technical lead", "tech lead"],

    # Business & Soft Skills
    "website management": ["web management", "site management"],
    "social media marketing": ["smm", "social marketing", "digital marketing"],
    "seo": ["search engine optimization", "search engine optimisation"],
    "client dealing": ["client management", "customer service", "client relations"],
    "communication": ["communication skills", "verbal communication", "written communication"],
    "leadership": ["leadership skills", "team management", "supervision"],
    "office management": ["administrative management", "office administration"],
    "presentation skills": ["presentations", "public speaking"],
    "business correspondence": ["business communication", "correspondence"],
    "team coordination": ["team collaboration", "teamwork"],
    "performance management": ["performance evaluation"],
    "problem solving": ["troubleshooting", "issue resolution"],
    "time management": ["scheduling", "prioritization"],
    "organization": ["organizational skills"],
    "multitasking": ["multi-tasking", "handling multiple tasks"],
    "attention to detail": ["detail oriented", "meticulous"],
    "analytical thinking": ["analytical skills", "critical thinking"],
    "strategic planning": ["strategic thinking"],
    "change management": ["change implementation"],
}

# Short single-token terms ("go", "ts", "ai", "java") must stand alone in text;
# anything longer is matched as a plain substring.
STANDALONE_TERM_MAX_LENGTH = 4

_WHITESPACE = re.compile(r"\s+")
_INNER_SEPARATOR = re.compile(r"(?<=[a-z0-9])[.\-](?=[a-z0-9])")
_ALL_SEPARATORS = re.compile(r"[\s._\-]+")


def _fold(value: str) -> str:
    return _WHITESPACE.sub(" ", value.lower().strip())


def _squash(value: str) -> str:
    return _ALL_SEPARATORS.sub("", value)


def _spellings(variant: str) -> FrozenSet[str]:
    """Variant plus its space-separated and joined forms ("node.js" -> "node js", "nodejs")."""
    folded = _fold(variant)
    if not _INNER_SEPARATOR.search(folded):
        return frozenset({folded})
    return frozenset({
        folded,
        _INNER_SEPARATOR.sub(" ", folded),
        _INNER_SEPARATOR.sub("", folded),
    })


def _build_indexes():
    variants: Dict[str, FrozenSet[str]] = {}
    reverse: Dict[str, str] = {}
    squashed: Dict[str, str] = {}
    for canonical, extras in SKILL_CATALOG.items():
        spellings = set()
        for variant in (canonical, *extras):
            spellings |= _spellings(variant)
        variants[canonical] = frozenset(spellings)
        # Last registered wins on collision
        for spelling in spellings:
            reverse[spelling] = canonical
            squashed[_squash(spelling)] = canonical
    return variants, reverse, squashed


_VARIANTS, _REVERSE_MAP, _SQUASHED_MAP = _build_indexes()
_CANONICAL_SKILLS: FrozenSet[str] = frozenset(_VARIANTS)


def canonical_skills() -> FrozenSet[str]:
    """All canonical skill ids."""
    return _CANONICAL_SKILLS


def iter_catalog():
    """Yield (skill_id, variants) pairs in catalog order."""
    for canonical in SKILL_CATALOG:
        yield canonical, _VARIANTS[canonical]


def variants_of(skill_id: str) -> FrozenSet[str]:
    """
    Every registered spelling of a skill id.

    Unknown ids yield a set containing only the (folded) id, never an empty set.
    """
    folded = _fold(skill_id or "")
    return _VARIANTS.get(folded, frozenset({folded}))


def normalize_skill(skill) -> str:
    """
    Normalize a raw skill string to its canonical id.

    Examples:
    - "React Native" -> "react"
    - "NodeJS" -> "node.js"
    - "Node JS" -> "node.js"
    - "Haskell" -> "haskell" (unmapped, returned folded)

    Never raises; a blank input yields "".
    """
    if skill is None:
        return ""
    folded = _fold(str(skill))
    if not folded:
        return ""

    canonical = _REVERSE_MAP.get(folded)
    if canonical:
        return canonical

    squashed = _squash(folded)
    if squashed and squashed in _SQUASHED_MAP:
        return _SQUASHED_MAP[squashed]

    return folded


# Standalone terms that read as plain English when followed by these words
_NOT_A_SKILL_BEFORE = {
    "less": ("than",),
}


@lru_cache(maxsize=2048)
def _term_pattern(term: str) -> "re.Pattern[str]":
    # "+" and "#" bind to the token, so "c" is not found inside "c++" or "c#"
    pattern = r"(?<![a-z0-9+#])" + re.escape(term) + r"(?![a-z0-9+#])"
    followers = _NOT_A_SKILL_BEFORE.get(term)
    if followers:
        pattern += r"(?!\s+(?:" + "|".join(followers) + r")\b)"
    return re.compile(pattern)


def mentions(text: str, term: str) -> bool:
    """
    Check whether ``term`` occurs in ``text`` (both compared lowercase).

    Multi-word and longer terms match as substrings, so "react native" is
    found inside "senior react native developer". Short single tokens such as
    "go" or "ts" only match when no letter, digit, "+" or "#" touches them,
    otherwise "google" would mention Go and "c++" would mention C. "less"
    followed by "than" is English, not the CSS preprocessor.
    """
    if not text or not term:
        return False
    text_lower = text.lower()
    term_lower = _fold(term)
    if not term_lower:
        return False
    if len(term_lower) <= STANDALONE_TERM_MAX_LENGTH and " " not in term_lower:
        return _term_pattern(term_lower).search(text_lower) is not None
    return term_lower in text_lower
