import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from fastapi import HTTPException
from pydantic import ValidationError

from timesync.core.config import AppConfig, load_config
from timesync.llm.types import CompromiseChoice, CompromiseRequest


SYSTEM_PROMPT = """You are a helpful meeting scheduler assistant. Your job is to analyze potential meeting times and suggest the best compromise time when there's no perfect overlap. Consider:
1. Time zone fairness - don't always inconvenience the same region
2. Reasonable working hours (8 AM - 9 PM local time is ideal, 6 AM - 10 PM is acceptable)
3. The number of people who can attend

Respond in JSON format with:
{
  "selectedSlotIndex": <index of the selected slot from candidates>,
  "reasoning": "<brief explanation of why this time was chosen>",
  "participantImpact": [
    {
      "name": "<participant name>",
      "localTime": "<time in their local timezone>",
      "inconvenienceLevel": "<ideal|good|workable|difficult>"
    }
  ]
}"""


class ReasoningClient(ABC):
    """Picks one compromise time out of a ranked candidate list."""

    @abstractmethod
    def choose_compromise(self, request: CompromiseRequest) -> CompromiseChoice:
        """Return the chosen candidate index with a rationale."""
        pass


class OpenAIReasoningClient(ReasoningClient):
    """OpenAI chat-completions client constrained to a JSON response."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", timeout_ms: int = 8000):
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_ms / 1000.0
        self.base_url = "https://api.openai.com/v1"

    def choose_compromise(self, request: CompromiseRequest) -> CompromiseChoice:
        prompt = build_compromise_prompt(request)
        content = self._call_openai_json(prompt)
        try:
            return CompromiseChoice.model_validate(json.loads(content))
        except (json.JSONDecodeError, ValidationError) as e:
            raise HTTPException(status_code=503, detail=f"OpenAI API returned malformed choice: {e}")

    def _call_openai_json(self, prompt: str) -> str:
        """Make API call to OpenAI and return the raw JSON message content."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        data: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt}
            ],
            "temperature": 0.3,
            "response_format": {"type": "json_object"}
        }

        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(
                    f"{self.base_url}/chat/completions",
                    headers=headers,
                    json=data
                )
        except httpx.TimeoutException:
            raise HTTPException(
                status_code=503,
                detail=f"OpenAI API timeout after {self.timeout_seconds}s"
            )
        except httpx.HTTPError as e:
            raise HTTPException(status_code=503, detail=f"OpenAI API error: {str(e)}")

        if response.status_code != 200:
            raise HTTPException(
                status_code=503,
                detail=f"OpenAI API error: {response.status_code} {response.text}"
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise HTTPException(status_code=503, detail=f"OpenAI API returned no content: {e}")
        if not content:
            raise HTTPException(status_code=503, detail="OpenAI API returned empty content")
        return content


def build_compromise_prompt(request: CompromiseRequest) -> str:
    """Build the user prompt listing participants and ranked candidates."""
    total = len(request.participants)
    participant_info = "\n".join(
        f"- {p.name} ({p.timezone}): {p.slot_count} available slots"
        for p in request.participants
    )

    blocks = []
    for candidate in request.candidates:
        local_times = "\n".join(
            f"  {entry.name} ({entry.timezone}): {entry.local_time}" for entry in candidate.local_times
        )
        blocks.append(
            f"Candidate {candidate.index}:\n"
            f"UTC Time: {candidate.utc_time}\n"
            f"Available: {candidate.available_count}/{total} participants\n"
            f"Local times:\n{local_times}"
        )
    candidate_info = "\n\n".join(blocks)

    return f"""Please analyze these potential meeting times and suggest the best one.

Participants:
{participant_info}

Meeting duration: {request.slot_duration} minutes

Top candidates:
{candidate_info}

Please select the best candidate and explain your reasoning."""


def select_reasoning_client(config: Optional[AppConfig] = None) -> Optional[ReasoningClient]:
    """
    Factory function to select the reasoning client based on configuration.

    Returns None when the LLM is disabled or has no API key; the compromise
    selector then uses its local most-available choice.
    """
    cfg = config or load_config()

    if not cfg.llm_enabled or not cfg.openai_api_key:
        return None

    return OpenAIReasoningClient(
        api_key=cfg.openai_api_key,
        model=cfg.llm_model,
        timeout_ms=cfg.llm_timeout_ms,
    )
