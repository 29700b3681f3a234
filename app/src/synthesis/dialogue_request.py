"""
Mapping from an approved dialogue to the synthesis provider's request shape.
"""

from dataclasses import dataclass
from typing import List, Sequence

from src.dialogue.models import DialogueTurn, VoiceAssignment


@dataclass(frozen=True)
class DialogueInput:
    text: str
    voice_id: str

    def to_payload(self) -> dict:
        return {"text": self.text, "voice_id": self.voice_id}


def build_dialogue_inputs(
    conversation: Sequence[DialogueTurn], voices: VoiceAssignment
) -> List[DialogueInput]:
    """One (text, voice) pair per turn, in playback order."""
    if not conversation:
        raise ValueError("Valid conversation is required")
    return [
        DialogueInput(text=turn.text, voice_id=voices.voice_for(turn.speaker))
        for turn in conversation
    ]
