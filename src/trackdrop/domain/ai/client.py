"""
AI classification of imported tracks using the OpenAI Responses API.

Given a song's title, artist and source, the model (optionally with web
search) identifies the performing/original artist and assigns a genre and
mood. The response must be a JSON object; anything else is an AIError.
"""

import json
import time
from typing import NamedTuple, Optional, Protocol

import openai
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

GENRES = [
    "pop", "rock", "hip-hop", "r&b", "electronic", "jazz", "classical", "folk",
    "country", "metal", "indie", "k-pop", "ballad", "soundtrack", "other",
]
MOODS = [
    "happy", "sad", "energetic", "calm", "romantic", "dark", "nostalgic",
    "dreamy", "angry", "uplifting",
]

SYSTEM_PROMPT = f"""You are a music metadata expert agent.
Given a song title and artist name, use web search to find:
1. The performing artist (who actually recorded/sang this version)
2. Whether this is a cover song, and if so who the original artist is
3. The song's genre, one of: {", ".join(GENRES)}
4. The song's mood, one of: {", ".join(MOODS)}
5. Links to this exact song on other major music platforms (Spotify, Apple Music, YouTube Music)

Respond ONLY with a JSON object in this exact shape (no markdown, no explanation):
{{
  "genre": "string",
  "mood": "string",
  "performingArtist": "string",
  "originalArtist": "string or null",
  "isCover": true/false,
  "platformLinks": [{{"platform": "spotify", "url": "https://..."}}],
  "summary": "One sentence description of the song and its history"
}}

If you cannot find a platform link, omit it from the array. Only include links you are confident are correct."""


class AIError(Exception):
    """Custom exception for AI-related errors."""

    pass


class ClassificationRequest(NamedTuple):
    title: str
    artist: str
    source_url: str
    source_platform: str


class PlatformLink(BaseModel):
    platform: str
    url: str


class ClassificationResult(BaseModel):
    """Validated model output. Serializes with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    genre: str = Field(min_length=1)
    mood: str = Field(min_length=1)
    performing_artist: str
    original_artist: Optional[str] = None
    is_cover: bool = False
    summary: str = ""
    platform_links: list[PlatformLink] = Field(default_factory=list)

    @field_validator("genre", "mood")
    @classmethod
    def _normalize_label(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("label must not be blank")
        return value


class ClassificationService(Protocol):
    async def classify(self, request: ClassificationRequest) -> ClassificationResult: ...


def build_user_prompt(request: ClassificationRequest) -> str:
    return f"""Song title: "{request.title}"
Artist: "{request.artist}"
Source platform: {request.source_platform}
Source URL: {request.source_url}

Find the metadata for this song."""


def parse_classification(output_text: str) -> ClassificationResult:
    """Parse the model's text output into a ClassificationResult.

    Accepts bare JSON or JSON wrapped in a markdown code block.

    Raises:
        AIError: If no valid JSON object matching the schema is found
    """
    text = output_text.strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        json_start = text.find("{")
        json_end = text.rfind("}") + 1
        if json_start == -1 or json_end <= json_start:
            raise AIError(f"Failed to parse JSON from AI response: {text[:200]}")
        try:
            data = json.loads(text[json_start:json_end])
        except json.JSONDecodeError:
            raise AIError(f"Failed to parse JSON from AI response: {text[:200]}")

    if not isinstance(data, dict):
        raise AIError("AI response is not a JSON object")
    try:
        return ClassificationResult.model_validate(data)
    except ValidationError as e:
        raise AIError(f"Malformed AI response: {e.error_count()} invalid field(s)") from e


class OpenAIClassifier:
    """ClassificationService backed by openai.AsyncOpenAI."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o-mini",
        web_search: bool = True,
        timeout_seconds: float = 60.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.web_search = web_search
        self.timeout_seconds = timeout_seconds
        self._client: Optional[openai.AsyncOpenAI] = None

    def _get_client(self) -> openai.AsyncOpenAI:
        if not self.api_key:
            raise AIError("No OpenAI API key found. Set OPENAI_API_KEY or add it to settings.")
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self.api_key, timeout=self.timeout_seconds
            )
        return self._client

    async def classify(self, request: ClassificationRequest) -> ClassificationResult:
        client = self._get_client()
        tools = [{"type": "web_search_preview"}] if self.web_search else []

        start_time = time.time()
        try:
            response = await client.responses.create(
                model=self.model,
                instructions=SYSTEM_PROMPT,
                input=build_user_prompt(request),
                tools=tools,
            )
        except openai.APITimeoutError as e:
            raise AIError(f"OpenAI request timed out after {self.timeout_seconds}s") from e
        except openai.APIError as e:
            raise AIError(f"OpenAI API error: {e}") from e

        response_time_ms = int((time.time() - start_time) * 1000)
        usage = getattr(response, "usage", None)
        logger.debug(
            f"Classified '{request.title}' in {response_time_ms}ms "
            f"(input_tokens={getattr(usage, 'input_tokens', '?')}, "
            f"output_tokens={getattr(usage, 'output_tokens', '?')})"
        )

        return parse_classification(response.output_text or "")
