"""Task types known to the AI queue.

Adding a task type means adding a :class:`TaskConfig` here (or calling
:func:`register_task_type` at import time of an extension); the queue itself
never changes.
"""

from __future__ import annotations

from typing import Any

from aiqueue.errors import UnknownTaskTypeError
from aiqueue.models import TaskConfig
from aiqueue.schemas import (
    WordInfoResponse,
    WordMorphologyResponse,
    response_schema,
    validate_word_info,
    validate_word_morphology,
)

QUANTUM_FACT_SYSTEM_PROMPT = (
    "You are a physics researcher tasked with sharing lesser-known quantum facts. "
    "Avoid common knowledge. Be concise, specific, and unafraid to include facts "
    "that may be re-evaluated in the future."
)

QUANTUM_FACT_USER_PROMPT = (
    "Generate a niche, lesser-known quantum physics fact.\n"
    "Prioritize obscure or speculative phenomena, things on the edge of current understanding, "
    "possibly debated or not widely known. Avoid generic summaries like superposition or "
    "wave-particle duality.\n"
    "Give a fact that feels strange, specific, and possibly subject to change with future "
    "discoveries. Keep it to one or two sentences."
)

WORD_INFO_SYSTEM_PROMPT = (
    "You are a language expert providing concise but comprehensive information about words.\n"
    "Give clear definitions, including parts of speech, pronunciation, synonyms, antonyms, "
    "examples, and etymology.\n"
    "Be precise and brief. Keep examples short and relevant.\n"
    "Use markdown such as **bold**, *italics*, and `backticks` where it helps readability."
)

WORD_MORPHOLOGY_SYSTEM_PROMPT = (
    "You are a linguistic expert specializing in etymology and morphology.\n"
    "Break words into their morphological components (prefixes, root, suffixes) and provide:\n"
    "1. The meaning of each morpheme\n"
    "2. Synonyms for each morpheme from different languages or origins where applicable\n"
    "3. The origin or etymology of each morpheme\n"
    "4. How the components combine to form the word's meaning\n"
    "Keep explanations brief but informative and use markdown for emphasis."
)

MELANCHOLIC_WHIMSY_SYSTEM_PROMPT = (
    "You are a poetic writing assistant that writes short narrative poems (20-80 lines) "
    "in a somber, tragic, and atmospheric style. The tone is emotionally understated yet "
    "powerful, relying on symbolism, metaphor, contrast, and evocative imagery rather than "
    "overt emotional declarations.\n\n"
    "Style:\n"
    "- Use rhythmic enjambment, subtle repetition, and layered metaphor.\n"
    "- Imply emotion through silence, visual motifs, and environmental decay.\n"
    "- Favor themes of memory, loss, solitude, futility, and sacrifice.\n"
    "- Build atmosphere with minimalist but lyrical description.\n"
    "- If a character is implied, depict them through what they have lost.\n"
    "- Do not resolve the tragedy.\n\n"
    "Respond with a single free-verse poem and no preamble."
)

MYTH_SYSTEM_PROMPT = (
    "You are a mythographer who writes short legends about the members of a Discord "
    "community. Each myth is three to five short paragraphs, written as if recorded by an "
    "ancient chronicler, playful rather than cruel, and inspired by the person's name. "
    "Begin immediately with no preamble."
)


def _word(payload: dict[str, Any]) -> str:
    return str(payload.get("word") or "").strip()


def _myth_prompt(payload: dict[str, Any]) -> str:
    username = payload.get("username") or "a nameless wanderer"
    prompt = f'Write a myth about the community member known as "{username}".'
    if payload.get("is_mod"):
        prompt += " They are one of the keepers of this server, so let the myth hint at their authority."
    return prompt


TASK_CONFIGS: dict[str, TaskConfig] = {
    "quantum-fact": TaskConfig(
        title="Quantum Fact Request",
        icon="\U0001F9E0",
        system_prompt=QUANTUM_FACT_SYSTEM_PROMPT,
        get_user_prompt=lambda payload: QUANTUM_FACT_USER_PROMPT,
        get_description=lambda payload: "Your quantum fact request",
    ),
    "word-info": TaskConfig(
        title="Word Information Request",
        icon="\U0001F4DA",
        system_prompt=WORD_INFO_SYSTEM_PROMPT,
        get_user_prompt=lambda payload: (
            f'Provide concise but comprehensive information about the word "{_word(payload)}". '
            "Keep explanations clear and brief."
        ),
        get_description=lambda payload: (
            f'Your word information request for "{_word(payload) or "unknown word"}"'
        ),
        schema=response_schema(WordInfoResponse),
        validator=validate_word_info,
    ),
    "word-morphology": TaskConfig(
        title="Word Morphology Analysis",
        icon="\U0001F52C",
        system_prompt=WORD_MORPHOLOGY_SYSTEM_PROMPT,
        get_user_prompt=lambda payload: (
            f'Break down the word "{_word(payload)}" into its morphological components '
            "(prefixes, root word, suffixes).\n\n"
            "For each component, provide the morpheme itself, its meaning, synonyms from "
            "other languages or origins (Latin, Greek, Sanskrit, ...) and a concise origin.\n\n"
            "Then explain how the components combine to create the word's overall meaning."
        ),
        get_description=lambda payload: (
            f'Your morphology analysis request for "{_word(payload) or "unknown word"}"'
        ),
        schema=response_schema(WordMorphologyResponse),
        validator=validate_word_morphology,
    ),
    "melancholic-whimsy": TaskConfig(
        title="Melancholic Verse Generator",
        icon="\U0001F56F\ufe0f",
        system_prompt=MELANCHOLIC_WHIMSY_SYSTEM_PROMPT,
        get_user_prompt=lambda payload: (
            f"Write a short poem based on this topic: {payload.get('topic', '')}. "
            "Follow the style and tone you have been instructed to."
        ),
        get_description=lambda payload: (
            f'Melancholy poem request about "{payload.get("topic") or "unknown theme"}"'
        ),
    ),
    "myth": TaskConfig(
        title="Myth Generation Request",
        icon="\U0001F30C",
        system_prompt=MYTH_SYSTEM_PROMPT,
        get_user_prompt=_myth_prompt,
        get_description=lambda payload: (
            f'Your myth request for "{payload.get("username") or "unknown wanderer"}"'
        ),
    ),
}


def register_task_type(name: str, config: TaskConfig) -> None:
    if name in TASK_CONFIGS:
        raise ValueError(f"Task type already registered: {name}")
    TASK_CONFIGS[name] = config


def get_task_config(name: str) -> TaskConfig:
    config = TASK_CONFIGS.get(name)
    if config is None:
        raise UnknownTaskTypeError(name)
    return config
