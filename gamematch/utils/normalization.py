"""Text folding and game-name normalization.

``fold_text`` is the light-weight cleanup the matching engine applies to every
query and field. ``normalize_game_name`` is the heavier, rule-based pipeline
that canonicalizes catalogue titles ("Super Mario Bros. 3 - Deluxe Ed." ->
"mario bros three deluxe") and reports which rules fired.

Built-in vocabularies are frozen module constants. Callers extend them per call
through ``NormalizationOptions.extra_abbreviations`` / ``extra_stop_words``.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field, asdict
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

_space_pattern = re.compile(r"\s+")
_dash_pattern = re.compile(r"[\-_]+")
_word_start_pattern = re.compile(r"\b\w")
_number_pattern = re.compile(r"\b\d+\b")

GAME_ABBREVIATIONS: Mapping[str, str] = MappingProxyType({
    # genres / game vocabulary
    "rpg": "role playing game",
    "fps": "first person shooter",
    "rts": "real time strategy",
    "mmo": "massively multiplayer online",
    "mmorpg": "massively multiplayer online role playing game",
    "pvp": "player versus player",
    "pve": "player versus environment",
    "dlc": "downloadable content",
    "ai": "artificial intelligence",
    "npc": "non player character",
    "ui": "user interface",
    "vr": "virtual reality",
    "ar": "augmented reality",
    # ordinals
    "1st": "first",
    "2nd": "second",
    "3rd": "third",
    "4th": "fourth",
    "5th": "fifth",
    # common shorthand
    "vs": "versus",
    "&": "and",
    "w/": "with",
    "w/o": "without",
    "pt": "part",
    "vol": "volume",
    "ch": "chapter",
    "ep": "episode",
    "ed": "edition",
    "ext": "extended",
    "std": "standard",
    "def": "definitive",
    "ult": "ultimate",
    "delx": "deluxe",
    "spec": "special",
    "ltd": "limited",
    "hd": "high definition",
    "4k": "four thousand",
    # in-game terms
    "char": "character",
    "chars": "characters",
    "lvl": "level",
    "max": "maximum",
    "min": "minimum",
    "dmg": "damage",
    "hp": "health points",
    "mp": "magic points",
    "exp": "experience",
    "xp": "experience points",
    # platforms
    "pc": "personal computer",
    "mac": "macintosh",
    "ps": "playstation",
    "xbox": "x box",
    "epic": "epic games",
})

GAME_STOP_WORDS: FrozenSet[str] = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "game", "games", "play", "player", "online", "free", "new", "best", "top", "super",
    "classic", "original", "official", "full", "complete", "ultimate", "final", "special",
    "edition", "version", "remake", "remaster", "remastered", "enhanced", "improved",
    "collection", "series", "saga", "trilogy", "pack", "bundle",
})

_NUMBER_WORDS = {
    1: "one", 2: "two", 3: "three", 4: "four", 5: "five",
    6: "six", 7: "seven", 8: "eight", 9: "nine", 10: "ten",
}

_BOOL_OPTIONS = (
    "remove_special_chars",
    "normalize_casing",
    "normalize_spaces",
    "expand_abbreviations",
    "remove_stop_words",
    "normalize_numbers",
)
_MAPPING_OPTIONS = ("custom_replacements", "extra_abbreviations")


def fold_text(text: str | None, case_sensitive: bool = False) -> str:
    """Trim, collapse whitespace runs and (unless case sensitive) lower-case."""
    if not text:
        return ""
    folded = " ".join(text.split())
    return folded if case_sensitive else folded.lower()


@dataclass(frozen=True)
class NormalizationOptions:
    """Switches for the individual ``normalize_game_name`` stages."""
    remove_special_chars: bool = True
    normalize_casing: bool = True
    normalize_spaces: bool = True
    expand_abbreviations: bool = True
    remove_stop_words: bool = True
    normalize_numbers: bool = True
    custom_replacements: Dict[str, str] = field(default_factory=dict)
    extra_abbreviations: Dict[str, str] = field(default_factory=dict)
    extra_stop_words: FrozenSet[str] = frozenset()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["extra_stop_words"] = sorted(self.extra_stop_words)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NormalizationOptions:
        """Build options from a partial mapping; raises ValueError when invalid."""
        if not validate_normalization_options(data):
            raise ValueError(f"Invalid normalization options: {dict(data)!r}")
        values = dict(data)
        if "extra_stop_words" in values:
            values["extra_stop_words"] = frozenset(w.lower() for w in values["extra_stop_words"])
        return cls(**values)


@dataclass
class NormalizationStep:
    rule: str
    before: str
    after: str


@dataclass
class NormalizationResult:
    original: str
    normalized: str
    applied_rules: List[str] = field(default_factory=list)
    steps: List[NormalizationStep] = field(default_factory=list)


# --- Individual stages -----------------------------------------------------

def _collapse(text: str) -> str:
    return _space_pattern.sub(" ", text).strip()


def _remove_special_chars(text: str) -> str:
    # Punctuation and symbols become spaces; combining marks stay with their letter
    text = "".join(" " if unicodedata.category(ch)[0] in ("P", "S") else ch for ch in text)
    return _collapse(text)


def _normalize_casing(text: str) -> str:
    return _word_start_pattern.sub(lambda m: m.group(0).upper(), text.lower())


def _normalize_spaces(text: str) -> str:
    return _collapse(_dash_pattern.sub(" ", text))


def _expand_abbreviations(text: str, replacements: Mapping[str, str]) -> str:
    text = text.lower()
    if not replacements:
        return text
    # Single pass so an expansion is never expanded again
    keys = sorted(replacements, key=len, reverse=True)
    pattern = re.compile(
        r"(?<!\w)(?:" + "|".join(re.escape(k) for k in keys) + r")(?!\w)",
        re.IGNORECASE,
    )
    return pattern.sub(lambda m: replacements[m.group(0).lower()], text)


def _remove_stop_words(text: str, stop_words: FrozenSet[str]) -> str:
    words = text.lower().split()
    kept = [w for w in words if w not in stop_words]
    if not kept:
        # Never reduce a name to nothing
        return words[0] if words else text
    return " ".join(kept)


def _normalize_numbers(text: str) -> str:
    return _number_pattern.sub(lambda m: _NUMBER_WORDS.get(int(m.group(0)), m.group(0)), text)


# --- Public API ------------------------------------------------------------

def normalize_game_name(name: str, options: Optional[NormalizationOptions] = None) -> NormalizationResult:
    """Run the normalization pipeline on a single game name.

    Stages run in a fixed order and each is recorded in ``steps`` only when it
    actually changed the text:

    1. remove_special_chars  - punctuation, hyphens and underscores become spaces
    2. normalize_casing      - lower-case, then capitalize word starts
    3. normalize_spaces      - collapse whitespace
    4. expand_abbreviations  - built-in + extra + custom replacements (lower-cases)
    5. remove_stop_words     - drops filler words, always keeps at least one word
    6. normalize_numbers     - standalone 1..10 become words

    Args:
        name: Raw game name
        options: Stage switches (defaults enable every stage)

    Returns:
        NormalizationResult with the final string and an audit trail
    """
    opts = options or NormalizationOptions()
    current = (name or "").strip()
    result = NormalizationResult(original=current, normalized=current)

    replacements: Dict[str, str] = {k.lower(): v.lower() for k, v in GAME_ABBREVIATIONS.items()}
    replacements.update({k.lower(): v.lower() for k, v in opts.extra_abbreviations.items()})
    replacements.update({k.lower(): v for k, v in opts.custom_replacements.items()})
    stop_words = GAME_STOP_WORDS | opts.extra_stop_words

    stages = [
        ("remove_special_chars", opts.remove_special_chars, _remove_special_chars),
        ("normalize_casing", opts.normalize_casing, _normalize_casing),
        ("normalize_spaces", opts.normalize_spaces, _normalize_spaces),
        ("expand_abbreviations", opts.expand_abbreviations,
         lambda t: _expand_abbreviations(t, replacements)),
        ("remove_stop_words", opts.remove_stop_words,
         lambda t: _remove_stop_words(t, stop_words)),
        ("normalize_numbers", opts.normalize_numbers, _normalize_numbers),
    ]
    for rule, enabled, stage in stages:
        if not enabled:
            continue
        before = current
        current = stage(current)
        if current != before:
            result.steps.append(NormalizationStep(rule=rule, before=before, after=current))
            result.applied_rules.append(rule)

    result.normalized = _collapse(current)
    return result


def batch_normalize(names: Iterable[str], options: Optional[NormalizationOptions] = None) -> List[NormalizationResult]:
    return [normalize_game_name(n, options) for n in names]


def build_normalization_dictionary(names: Iterable[str], options: Optional[NormalizationOptions] = None) -> Dict[str, str]:
    """Map each original name to its normalized form."""
    return {n: normalize_game_name(n, options).normalized for n in names}


def find_equivalent_names(target: str, names: Iterable[str], options: Optional[NormalizationOptions] = None) -> List[str]:
    """Return the names whose normalized form equals the target's."""
    wanted = normalize_game_name(target, options).normalized
    return [n for n in names if normalize_game_name(n, options).normalized == wanted]


def validate_normalization_options(data: Mapping[str, Any]) -> bool:
    """Check a partial options mapping. Never raises."""
    if not isinstance(data, Mapping):
        return False
    for key, value in data.items():
        if key in _BOOL_OPTIONS:
            if not isinstance(value, bool):
                return False
        elif key in _MAPPING_OPTIONS:
            if not isinstance(value, Mapping):
                return False
            if not all(isinstance(k, str) and isinstance(v, str) for k, v in value.items()):
                return False
        elif key == "extra_stop_words":
            if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
                return False
            if not all(isinstance(w, str) for w in value):
                return False
        else:
            return False
    return True


__all__ = [
    "GAME_ABBREVIATIONS",
    "GAME_STOP_WORDS",
    "NormalizationOptions",
    "NormalizationStep",
    "NormalizationResult",
    "fold_text",
    "normalize_game_name",
    "batch_normalize",
    "build_normalization_dictionary",
    "find_equivalent_names",
    "validate_normalization_options",
]
