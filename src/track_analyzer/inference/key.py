"""Key detection - Identify the tonal center of a track from its chroma profile.

Implements:
- Krumhansl-Schmuckler key profiles (Temperley profiles as an alternative)
- Rotated-template scoring for all 24 major/minor keys
- Standard and Camelot notation computed from root and mode
- Relative/parallel keys and Camelot-wheel neighbours
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from ..analysis.chroma import ChromaProfile
from ..core.config import KeyConfig
from ..core.constants import PITCH_NAMES

# Conventional spellings, indexed by position on the circle of fifths
MAJOR_NAMES = ["C", "G", "D", "A", "E", "B", "F#", "Db", "Ab", "Eb", "Bb", "F"]
MINOR_NAMES = ["Am", "Em", "Bm", "F#m", "C#m", "G#m", "D#m", "Bbm", "Fm", "Cm", "Gm", "Dm"]

FIFTH = 7  # semitones; also its own inverse mod 12
CAMELOT_C_MAJOR = 8
CAMELOT_PATTERN = re.compile(r"^\s*(1[0-2]|[1-9])\s*([ABab])\s*$")


class Mode(Enum):
    """Musical modes."""
    MAJOR = "major"
    MINOR = "minor"


@dataclass(frozen=True)
class Key:
    """A major or minor key: a root pitch class plus a mode."""

    root: int  # 0 = C
    mode: Mode

    def __post_init__(self):
        if not 0 <= self.root < 12:
            raise ValueError(f"Root pitch class must be within 0-11, got {self.root}")

    @property
    def is_major(self) -> bool:
        return self.mode is Mode.MAJOR

    @property
    def circle_position(self) -> int:
        """Position on the circle of fifths (C major / A minor = 0)."""
        # The relative major shares the minor key's position
        major_root = self.root if self.is_major else (self.root + 3) % 12
        return (major_root * FIFTH) % 12

    @property
    def index(self) -> int:
        """Index in the canonical 24-key ordering (0-11 major, 12-23 minor)."""
        return self.circle_position + (0 if self.is_major else 12)

    @property
    def name(self) -> str:
        names = MAJOR_NAMES if self.is_major else MINOR_NAMES
        return names[self.circle_position]

    @property
    def camelot(self) -> str:
        number = (self.circle_position + CAMELOT_C_MAJOR - 1) % 12 + 1
        return f"{number}{'B' if self.is_major else 'A'}"

    @property
    def long_name(self) -> str:
        """E.g. 'F# minor'."""
        return f"{PITCH_NAMES[self.root]} {self.mode.value}"

    @property
    def relative(self) -> "Key":
        """Relative minor is 3 semitones down; relative major 3 semitones up."""
        if self.is_major:
            return Key((self.root - 3) % 12, Mode.MINOR)
        return Key((self.root + 3) % 12, Mode.MAJOR)

    @property
    def parallel(self) -> "Key":
        """Same root, other mode."""
        return Key(self.root, Mode.MINOR if self.is_major else Mode.MAJOR)

    def camelot_neighbors(self) -> List["Key"]:
        """Keys that mix harmonically: relative key and one step either way on the wheel."""
        step_down = Key.from_index(
            (self.circle_position - 1) % 12 + (0 if self.is_major else 12)
        )
        step_up = Key.from_index(
            (self.circle_position + 1) % 12 + (0 if self.is_major else 12)
        )
        return [self.relative, step_down, step_up]

    @classmethod
    def from_index(cls, index: int) -> "Key":
        """Inverse of ``Key.index``."""
        if not 0 <= index < 24:
            raise ValueError(f"Key index must be within 0-23, got {index}")
        position = index % 12
        major_root = (position * FIFTH) % 12
        if index < 12:
            return cls(major_root, Mode.MAJOR)
        return cls((major_root - 3) % 12, Mode.MINOR)

    @classmethod
    def from_camelot(cls, code: str) -> "Key":
        """Parse a Camelot code such as '8A' or '11B'."""
        match = CAMELOT_PATTERN.match(code)
        if not match:
            raise ValueError(f"Invalid Camelot code: {code!r}")
        number, letter = int(match.group(1)), match.group(2).upper()
        position = (number - CAMELOT_C_MAJOR) % 12
        return cls.from_index(position + (0 if letter == "B" else 12))

    def __str__(self) -> str:
        return self.name


ALL_KEYS: Tuple[Key, ...] = tuple(Key.from_index(i) for i in range(24))


@dataclass(frozen=True)
class KeyCandidate:
    """A candidate key with its template score."""

    key: Key
    score: float

    @property
    def name(self) -> str:
        return self.key.name


@dataclass(frozen=True)
class MusicalKey:
    """Container for key detection results."""

    key_name: str  # Standard notation (e.g. "C#m")
    camelot: str  # Camelot notation (e.g. "12A")
    confidence: float  # 0.0 - 1.0
    is_major: bool
    key_index: int  # Index in the canonical 24-key ordering
    key: Key
    alternatives: Tuple[KeyCandidate, ...] = ()

    def __post_init__(self):
        if (self.key_name, self.camelot, self.is_major, self.key_index) != (
            self.key.name, self.key.camelot, self.key.is_major, self.key.index
        ):
            raise ValueError(
                f"Key fields ({self.key_name}, {self.camelot}, index {self.key_index}) "
                f"do not describe {self.key.long_name}"
            )

    @classmethod
    def from_key(
        cls,
        key: Key,
        confidence: float,
        alternatives: Tuple[KeyCandidate, ...] = (),
    ) -> "MusicalKey":
        return cls(
            key_name=key.name,
            camelot=key.camelot,
            confidence=confidence,
            is_major=key.is_major,
            key_index=key.index,
            key=key,
            alternatives=alternatives,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key_name,
            "camelot": self.camelot,
            "confidence": self.confidence,
            "is_major": self.is_major,
            "key_index": self.key_index,
            "relative": self.key.relative.name,
            "parallel": self.key.parallel.name,
            "alternatives": [
                {"key": c.name, "camelot": c.key.camelot, "score": c.score}
                for c in self.alternatives
            ],
        }


class KeyDetector:
    """Detect musical key by correlating a chroma profile with key templates.

    Features:
    - Krumhansl-Schmuckler (default) or Temperley key profiles
    - Deterministic tie-breaking: major before minor, lower root first
    - Configurable confidence normalization
    """

    # Krumhansl-Schmuckler key profiles (cognitive-based)
    KRUMHANSL_MAJOR = np.array(
        [6.35, 2.23, 3.48, 2.33, 4.38, 4.09, 2.52, 5.19, 2.39, 3.66, 2.29, 2.88]
    )
    KRUMHANSL_MINOR = np.array(
        [6.33, 2.68, 3.52, 5.38, 2.60, 3.53, 2.54, 4.75, 3.98, 2.69, 3.34, 3.17]
    )

    # Temperley key profiles (corpus-based, often more accurate for pop/rock)
    TEMPERLEY_MAJOR = np.array(
        [5.0, 2.0, 3.5, 2.0, 4.5, 4.0, 2.0, 4.5, 2.0, 3.5, 1.5, 4.0]
    )
    TEMPERLEY_MINOR = np.array(
        [5.0, 2.0, 3.5, 4.5, 2.0, 4.0, 2.0, 4.5, 3.5, 2.0, 1.5, 4.0]
    )

    def __init__(
        self,
        config: Optional[KeyConfig] = None,
        profile_type: str = "krumhansl",
        n_alternatives: int = 3,
    ):
        """
        Initialize KeyDetector.

        Args:
            config: Confidence normalization settings
            profile_type: Key profile algorithm ("krumhansl" or "temperley")
            n_alternatives: Runner-up keys reported alongside the winner
        """
        self.config = config or KeyConfig()
        self.config.validate()
        self.profile_type = profile_type
        self.n_alternatives = n_alternatives

        if profile_type == "temperley":
            self.major_profile = self.TEMPERLEY_MAJOR
            self.minor_profile = self.TEMPERLEY_MINOR
        elif profile_type == "krumhansl":
            self.major_profile = self.KRUMHANSL_MAJOR
            self.minor_profile = self.KRUMHANSL_MINOR
        else:
            raise ValueError(f"Unknown profile type: {profile_type}")

    @property
    def confidence_normalizer(self) -> float:
        """Divisor mapping the best score into [0, 1].

        When derived from the templates it is the best score a unit-sum
        chroma vector can reach: all energy on the largest template entry.
        """
        if self.config.normalize_by_templates:
            return float(max(self.major_profile.max(), self.minor_profile.max()))
        return self.config.confidence_normalizer

    def template(self, key: Key) -> np.ndarray:
        """Template rotated so that index ``key.root`` holds the tonic weight."""
        profile = self.major_profile if key.is_major else self.minor_profile
        return np.roll(profile, key.root)

    def score(self, chroma: np.ndarray, key: Key) -> float:
        """Correlation of a chroma vector with one key's rotated template."""
        return float(np.dot(chroma, self.template(key)))

    def rank(self, chroma: ChromaProfile) -> List[KeyCandidate]:
        """
        Score all 24 keys.

        Returns:
            Candidates sorted by score, best first; ties keep the order
            major before minor, then ascending root
        """
        values = np.asarray(chroma.profile, dtype=np.float64)
        candidates = [
            KeyCandidate(Key(root, mode), self.score(values, Key(root, mode)))
            for mode in (Mode.MAJOR, Mode.MINOR)
            for root in range(12)
        ]
        candidates.sort(key=lambda c: c.score, reverse=True)
        return candidates

    def detect(self, chroma: ChromaProfile) -> MusicalKey:
        """
        Detect the best-matching key.

        An all-zero profile yields C major with confidence 0.0.
        """
        ranked = self.rank(chroma)
        best = ranked[0]
        confidence = min(1.0, max(0.0, best.score / self.confidence_normalizer))
        alternatives = tuple(ranked[1:1 + self.n_alternatives])
        return MusicalKey.from_key(best.key, confidence, alternatives)


def detect_key(chroma: ChromaProfile, config: Optional[KeyConfig] = None) -> MusicalKey:
    """Detect a key with the given (or default) configuration."""
    return KeyDetector(config).detect(chroma)
