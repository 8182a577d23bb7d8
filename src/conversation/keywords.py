"""Keyword sets and clip descriptions used for intent classification."""

from __future__ import annotations

from conversation.types import RESPONSE_CLIPS, Clip

GOODBYE_PHRASES: tuple[str, ...] = (
    "goodbye",
    "good bye",
    "bye",
    "bye-bye",
    "see you again",
    "see you later",
    "see you",
    "take care",
    "farewell",
    "have a good one",
    "catch you later",
    "gotta go",
    "i'm leaving",
    "i am leaving",
    "talk later",
    "until next time",
    "good night",
    "so long",
    "later",
)

EASTER_EGG_PHRASES: tuple[str, ...] = (
    "applying for job",
    "job position",
    "job",
    "jobs",
    "career",
    "careers",
    "hiring",
    "apply",
    "applying",
    "application",
    "position",
    "vacancy",
    "work here",
    "employment",
    "recruit",
    "recruiting",
    "interview",
)

WEATHER_PHRASES: tuple[str, ...] = (
    "weather",
    "today's weather",
    "forecast",
    "temperature",
    "rain",
    "raining",
    "rainy",
    "sunny",
    "snow",
    "snowing",
    "cold",
    "hot",
    "degrees",
    "climate",
    "outside",
)

GREETING_PHRASES: tuple[str, ...] = (
    "hello",
    "hi",
    "hey",
    "good morning",
    "good afternoon",
    "good evening",
    "greetings",
    "howdy",
)

GENERAL_PHRASES: tuple[str, ...] = (
    "how are you",
    "how are you doing",
    "how's it going",
    "how do you do",
    "what's up",
    "nice to meet you",
    "who are you",
    "what can you do",
    "tell me about yourself",
    "thank you",
    "thanks",
)

# Phrases that explicitly mean "I can't be understood"; they map to fallback
# before the default does.
FALLBACK_PHRASES: tuple[str, ...] = (
    "i don't know",
    "never mind",
    "nevermind",
    "whatever",
    "huh",
)

# Evaluation order matters: the first set that matches wins.
KEYWORD_PRIORITY: tuple[tuple[Clip, tuple[str, ...]], ...] = (
    (Clip.GOODBYE, GOODBYE_PHRASES),
    (Clip.EASTER_EGG, EASTER_EGG_PHRASES),
    (Clip.WEATHER, WEATHER_PHRASES),
    (Clip.GREETING, GREETING_PHRASES),
    (Clip.GENERAL, GENERAL_PHRASES),
    (Clip.FALLBACK, FALLBACK_PHRASES),
)

CLIP_DESCRIPTIONS: dict[Clip, str] = {
    Clip.EASTER_EGG: (
        "User talks about jobs, applying for a job, career, hiring, or a specific job position. "
        "Use only for this topic."
    ),
    Clip.FALLBACK: (
        "Use when the message is unclear, off-topic, or not understandable. "
        "Plays a neutral 'I didn't get that' style response."
    ),
    Clip.GENERAL: (
        "Default for normal chat: small talk, how are you, or anything that doesn't fit "
        "goodbye, job, greeting or weather. The avatar gives a general friendly reply."
    ),
    Clip.GOODBYE: (
        "User is ending the conversation, saying farewell, or leaving. "
        "Use for goodbye, bye, see you, take care, have a good one, I'm leaving, etc."
    ),
    Clip.GREETING: "User greets the avatar: hello, hi, hey, good morning.",
    Clip.IDLE: "Waiting for a session to start.",
    Clip.LISTENING: "Listening while the user speaks.",
    Clip.PROMPT: "Asks whether the user is still there after a silence.",
    Clip.WEATHER: (
        "User asks about weather, forecast, temperature, or conditions (sun, rain, cold, hot). "
        "Use for any weather-related question or comment."
    ),
}


def describe_response_clips() -> str:
    """Render one ``- id: description`` line per response clip."""

    return "\n".join(f"- {clip.value}: {CLIP_DESCRIPTIONS[clip]}" for clip in RESPONSE_CLIPS)
