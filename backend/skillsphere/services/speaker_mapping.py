"""
Speaker attribution for diarized transcripts.

The speech-to-text provider labels voices ("A", "B", ...) without knowing who
is who. Which label is the learner and which is the mentor is a policy
decision, so it is injected into TranscriptService rather than hard-coded.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Protocol

from ..core.enums import SpeakerRole


def labels_in_order(labels: Iterable[str]) -> List[str]:
    """Distinct labels in order of first appearance."""
    seen: Dict[str, None] = {}
    for label in labels:
        seen.setdefault(label, None)
    return list(seen)


class SpeakerMappingPolicy(Protocol):
    def map_labels(self, labels: Iterable[str]) -> Dict[str, SpeakerRole]:
        """Map every provider label in ``labels`` to a participant role."""
        ...


class FirstSeenSpeakerPolicy:
    """First voice heard is the learner, the second is the mentor.

    This is a guess: nothing checks that the learner actually spoke first.
    Use ExplicitSpeakerPolicy when the assignment is known.
    """

    order = (SpeakerRole.LEARNER, SpeakerRole.MENTOR)

    def map_labels(self, labels: Iterable[str]) -> Dict[str, SpeakerRole]:
        mapping: Dict[str, SpeakerRole] = {}
        for index, label in enumerate(labels_in_order(labels)):
            mapping[label] = self.order[index] if index < len(self.order) else SpeakerRole.UNKNOWN
        return mapping


class ExplicitSpeakerPolicy:
    """Fixed label -> role map, e.g. set by a participant after listening back."""

    def __init__(self, assignments: Mapping[str, str]):
        self.assignments = {label: SpeakerRole(role) for label, role in assignments.items()}

    def map_labels(self, labels: Iterable[str]) -> Dict[str, SpeakerRole]:
        return {
            label: self.assignments.get(label, SpeakerRole.UNKNOWN)
            for label in labels_in_order(labels)
        }


def policy_for(
    speaker_labels: Optional[Mapping[str, str]], default: SpeakerMappingPolicy
) -> SpeakerMappingPolicy:
    """Per-transcript explicit labels win over the service-wide default."""
    if speaker_labels:
        return ExplicitSpeakerPolicy(speaker_labels)
    return default
