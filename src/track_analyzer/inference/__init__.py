"""Inference layer - Musical understanding.

This layer turns a chroma profile into a key:
- Template correlation over all 24 major/minor keys
- Standard and Camelot notation
- Relative, parallel and mixable neighbouring keys

Pipeline: Chroma → Key → Camelot
"""

from .key import ALL_KEYS, Key, KeyCandidate, KeyDetector, Mode, MusicalKey, detect_key

__all__ = [
    "ALL_KEYS",
    "Key",
    "KeyCandidate",
    "KeyDetector",
    "Mode",
    "MusicalKey",
    "detect_key",
]
