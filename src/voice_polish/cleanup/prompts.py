"""Instruction templates for the two cleanup passes."""

from __future__ import annotations

TRANSCRIPT_FENCE = "---"

_CLEANUP_TEMPLATE = """You are an expert transcript editor. Clean up the raw speech transcription below so that it reads fluently and is well formed, while keeping ALL of its original content and meaning.

**Rules:**
1. **Do not summarize.** Keep every idea, detail and example from the original.
2. **Remove filler words** such as umm, uh, er, like, you know, basically, actually.
3. **Remove pause markers** such as [pause], (pause) and trailing ellipses.
4. **Fix grammar and sentence structure** so the text reads smoothly.
5. **Remove false starts and repetitions** ("I think I think" becomes "I think").
6. **Keep the speaker's voice and tone**; do not make it overly formal.
7. **Split run-on sentences** and improve the flow.
8. **Preserve all facts, numbers, names and specific details** exactly as stated.

The result should read like a clean transcription of someone speaking clearly, not like a summary or a rewrite.

**Raw transcription:**
{fence}
{transcript}
{fence}

**Return ONLY the cleaned transcription, with no explanations, headers or metadata.**"""

_INTELLIGENT_TEMPLATE = """You are an expert transcript editor and linguist. The transcription below is of poor quality. Correct and reconstruct it aggressively so that it is logically coherent and easy to read.

It probably contains words the recognizer misheard, mispronounced words, sentence fragments, words that sound right but make no sense in context, and missing punctuation.

**Instructions:**
1. **Fix likely mis-transcriptions.** Use the surrounding context and phonetic similarity to replace words that make no sense with the words the speaker most plausibly said.
2. **Rebuild sentence boundaries.** Add punctuation, give sentences clear subjects and predicates, and merge fragments when the connection is obvious. End genuine questions with a question mark.
3. **Delete incomprehensible fragments**, noise words and false starts that carry no meaning, including at the start and end of the text.
4. **Preserve the core argument.** Keep the speaker's reasoning, its order and every point that belongs to it.

Prefer logical coherence over literal fidelity, readable sentences over keeping every word, and clear meaning over exact word choice.

**Raw transcription:**
{fence}
{transcript}
{fence}

**Return ONLY the corrected transcription, with no explanations, headers or metadata.**"""


def build_cleanup_prompt(transcript: str) -> str:
    return _CLEANUP_TEMPLATE.format(fence=TRANSCRIPT_FENCE, transcript=transcript)


def build_intelligent_prompt(transcript: str) -> str:
    return _INTELLIGENT_TEMPLATE.format(fence=TRANSCRIPT_FENCE, transcript=transcript)


def extract_transcript(prompt: str) -> str:
    """Return the text between the transcript fences of a built prompt."""

    parts = prompt.split(f"\n{TRANSCRIPT_FENCE}\n")
    if len(parts) < 3:
        return ""
    return f"\n{TRANSCRIPT_FENCE}\n".join(parts[1:-1])


__all__ = ["TRANSCRIPT_FENCE", "build_cleanup_prompt", "build_intelligent_prompt", "extract_transcript"]
