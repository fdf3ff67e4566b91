import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List

# ASCII whitespace without \v
_WS = r"\t\n\f\r "

SECRET_PATTERN = re.compile(
    rf"""(api_key|token|secret)[{_WS}]*[:=][{_WS}]*["']?([^"{_WS}]+)["']?""",
    re.IGNORECASE,
)
ENDPOINT_PATTERN = re.compile(rf'https?://[^"{_WS}]+')


class Category(Enum):
    SECRET = "secrets"
    ENDPOINT = "endpoints"


@dataclass(frozen=True)
class Finding:
    category: Category
    value: str


@dataclass(frozen=True)
class MatchRule:
    """A compiled pattern plus the function turning a match into a finding value."""
    category: Category
    pattern: re.Pattern
    render: Callable[[re.Match], str]

    def findings(self, text: str) -> List[Finding]:
        return [Finding(self.category, self.render(m)) for m in self.pattern.finditer(text)]


SECRET_RULE = MatchRule(
    category=Category.SECRET,
    pattern=SECRET_PATTERN,
    # Label casing is kept as matched: "API_KEY" and "api_key" stay distinct
    render=lambda m: f"{m.group(1)}: {m.group(2)}",
)

ENDPOINT_RULE = MatchRule(
    category=Category.ENDPOINT,
    pattern=ENDPOINT_PATTERN,
    render=lambda m: m.group(0),
)

DEFAULT_RULES = (SECRET_RULE, ENDPOINT_RULE)


def decode_content(content: bytes) -> str:
    """Decodes raw file bytes without encoding detection. Never raises."""
    return content.decode("utf-8", errors="replace")


class PatternMatcher:
    """
    Stateless matcher applying every rule to a file's content.

    Findings are returned rule by rule, each rule's matches in source order.
    """

    def __init__(self, rules: Iterable[MatchRule] = DEFAULT_RULES):
        self.rules = tuple(rules)

    @property
    def categories(self) -> List[Category]:
        return [rule.category for rule in self.rules]

    def match(self, content: bytes) -> List[Finding]:
        text = decode_content(content)
        findings: List[Finding] = []
        for rule in self.rules:
            findings.extend(rule.findings(text))
        return findings


_default_matcher = PatternMatcher()


def match(content: bytes) -> List[Finding]:
    return _default_matcher.match(content)
