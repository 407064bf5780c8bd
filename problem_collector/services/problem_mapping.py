"""Mapping from external payloads to problem fields.

Tier names follow solved.ac levels, tags are normalized to English canonical
names, and a coarse statement language is detected from character classes.
"""

from collections.abc import Iterable
from typing import Any

DEFAULT_CATEGORY = "implementation"
UNKNOWN_CATEGORY = "unknown"

_TIER_NAMES = ("Bronze", "Silver", "Gold", "Platinum", "Diamond", "Ruby")
_TIER_STEPS = ("V", "IV", "III", "II", "I")

# solved.ac tag key -> (English canonical name, Korean display name)
CANONICAL_TAGS: dict[str, tuple[str, str]] = {
    "implementation": ("implementation", "구현"),
    "math": ("math", "수학"),
    "greedy": ("greedy", "그리디 알고리즘"),
    "dp": ("dynamic programming", "다이나믹 프로그래밍"),
    "graphs": ("graph theory", "그래프 이론"),
    "graph_traversal": ("graph traversal", "그래프 탐색"),
    "bfs": ("breadth-first search", "너비 우선 탐색"),
    "dfs": ("depth-first search", "깊이 우선 탐색"),
    "bruteforcing": ("bruteforcing", "브루트포스 알고리즘"),
    "sorting": ("sorting", "정렬"),
    "binary_search": ("binary search", "이분 탐색"),
    "string": ("string", "문자열"),
    "data_structures": ("data structures", "자료 구조"),
    "trees": ("trees", "트리"),
    "shortest_path": ("shortest path", "최단 경로"),
    "dijkstra": ("dijkstra's", "데이크스트라"),
    "backtracking": ("backtracking", "백트래킹"),
    "prefix_sum": ("prefix sum", "누적 합"),
    "two_pointer": ("two-pointer", "두 포인터"),
    "simulation": ("simulation", "시뮬레이션"),
    "number_theory": ("number theory", "정수론"),
    "combinatorics": ("combinatorics", "조합론"),
    "geometry": ("geometry", "기하학"),
    "segtree": ("segment tree", "세그먼트 트리"),
    "priority_queue": ("priority queue", "우선순위 큐"),
    "hashing": ("hashing", "해싱"),
    "arithmetic": ("arithmetic", "사칙연산"),
    "recursion": ("recursion", "재귀"),
    "stack": ("stack", "스택"),
    "queue": ("queue", "큐"),
}

_KOREAN_TO_ENGLISH = {korean: english for english, korean in CANONICAL_TAGS.values()}
_KNOWN_ENGLISH = frozenset(english for english, _ in CANONICAL_TAGS.values())

HANGUL_MIN_COUNT = 5
CJK_MIN_COUNT = 5


def tier_name(level: int) -> str:
    """Map a solved.ac level (0-30) to a tier name such as ``Gold III``.

    Raises:
        ValueError: level is outside 0-30.
    """
    if not 0 <= level <= 30:
        raise ValueError(f"Problem level must be within 0-30, got {level}")
    if level == 0:
        return "Unrated"
    tier, step = divmod(level - 1, 5)
    return f"{_TIER_NAMES[tier]} {_TIER_STEPS[step]}"


def _display_name(tag: dict[str, Any], language: str) -> str | None:
    for display in tag.get("displayNames") or []:
        if display.get("language") == language and display.get("name"):
            return display["name"]
    return None


def extract_tags(tags: Iterable[dict[str, Any]]) -> list[str]:
    """Normalize solved.ac tag objects to English canonical names.

    The Korean display name wins when it is a known tag, then the tag key,
    then the English display name. Order is kept, duplicates dropped.
    """
    result: list[str] = []
    for tag in tags:
        key = tag.get("key") or ""
        korean = _display_name(tag, "ko")
        if korean and korean in _KOREAN_TO_ENGLISH:
            name = _KOREAN_TO_ENGLISH[korean]
        elif key in CANONICAL_TAGS:
            name = CANONICAL_TAGS[key][0]
        else:
            name = _display_name(tag, "en") or key
        if name and name not in result:
            result.append(name)
    return result


def determine_category(tags: list[str]) -> str:
    """First tag decides the category; untagged problems are implementation."""
    if not tags:
        return DEFAULT_CATEGORY
    first = tags[0]
    return first if first in _KNOWN_ENGLISH else UNKNOWN_CATEGORY


def _count(text: str, low: int, high: int) -> int:
    return sum(1 for ch in text if low <= ord(ch) <= high)


def guess_language_from_title(title: str) -> str:
    """Cheap first guess from the title; refined later from the statement."""
    if not title or not title.strip():
        return "other"
    if _count(title, 0xAC00, 0xD7A3) >= HANGUL_MIN_COUNT:
        return "ko"
    return "other"


def detect_language(text: str) -> str:
    """Detect the statement language: ko, ja, zh, en or other."""
    if not text or not text.strip():
        return "other"
    if _count(text, 0xAC00, 0xD7A3) >= HANGUL_MIN_COUNT:
        return "ko"
    if _count(text, 0x3040, 0x30FF) > 0:
        return "ja"
    if _count(text, 0x4E00, 0x9FFF) >= CJK_MIN_COUNT:
        return "zh"

    letters = [ch for ch in text if ch.isalpha()]
    if letters and sum(1 for ch in letters if ch.isascii()) / len(letters) >= 0.9:
        return "en"
    return "other"


def problem_url(base_url: str, problem_id: int) -> str:
    return f"{base_url.rstrip('/')}/problem/{problem_id}"
