"""
Prompt templates for conversation generation.

Two entry points share the same output schema:

* ``transcript_prompt`` — the webhook ``process`` stage, which rewrites an
  existing transcript as a two-host podcast.
* ``dramatize_prompt`` — the direct ``/api/generate-podcast`` endpoint, which
  invents a lively debate about arbitrary content.
"""

from typing import Optional

from configs.config import get_config
from src.dialogue.models import language_name

cfg = get_config()


def transcript_prompt(transcript: str, title: Optional[str], language: str) -> str:
    """Prompt used by the webhook ``process`` stage."""
    name = language_name(language)
    return f"""Convert the following transcript into a natural podcast conversation between two speakers (Speaker1 and Speaker2).
The conversation should be in {name} language.
Make it engaging, conversational, and natural. Add appropriate pauses, reactions, and dialogue flow.
All dialogue should be in {name}.

Transcript:
{transcript}

Title: {title or cfg.DEFAULT_TITLE}
Language: {name} ({language})"""


_HOSTS = """HOSTS:
Speaker1 (male, energetic and a little naive):
- Enthusiastic and optimistic, asks lots of questions, sometimes obvious ones
- Gets excited quickly: "Oh wow!", "Wait, really?", "I had no idea!"
- Uses masculine grammatical forms in gender-inflected languages

Speaker2 (female, sceptical and a bit arrogant):
- Thinks she knows everything, corrects and challenges Speaker1
- Points out flaws and downsides, sighs, makes dry sarcastic remarks
- Uses feminine grammatical forms in gender-inflected languages"""

_STYLE = """STYLE:
- Let speakers interrupt each other; mark a cut-off sentence with an em dash
  ("So I was thinking we could—" / "—do the obvious thing?")
- Annotate emotions inline: [laughs], [sighs], [surprised], [skeptical], [thoughtful]
- Mix very short reactions with longer explanations
- Use contractions, casual language and the odd natural hesitation
- Grammar, case endings and agreement must be correct for the target language"""


def dramatize_prompt(content: str, title: Optional[str], language: str) -> str:
    """Prompt used by the streaming ``generate-podcast`` endpoint."""
    name = language_name(language)
    return f"""Create a dynamic, natural podcast conversation between two speakers about the following content. It should sound like real people talking, with interruptions and organic flow.

IMPORTANT: Generate the whole conversation in {name}.

NUMBERS MUST BE WRITTEN AS WORDS: spell out every number, percentage, year, amount and measurement in {name} ("5" -> "five", "2024" -> "two thousand twenty-four", "50%" -> "fifty percent"). Never use digits or numeric symbols; the text goes straight to text-to-speech.

Title: {title or "Article"}

Content: {content}

{_HOSTS}

{_STYLE}

Keep the TOTAL conversation under 2500 characters: eight to twelve short, punchy exchanges about the most surprising parts of the content."""
