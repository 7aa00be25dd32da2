from __future__ import annotations

import json
from typing import Any

from openai import OpenAI

from booking_engine.application.exceptions import LLMContractError, LLMUpstreamError
from booking_engine.application.ports.slot_scorer import SlotScorerPort
from booking_engine.core.config import settings
from booking_engine.domain.entities.appointment import Appointment
from booking_engine.domain.entities.time_slot import TimeSlot
from booking_engine.infrastructure.llm.prompts import build_scoring_prompt


class OpenAISlotScorer(SlotScorerPort):
    """
    OpenAI-backed adapter implementing SlotScorerPort.

    Contract guarantees:
    - score returns one annotated slot per input slot, in input order
    - Raises:
        LLMUpstreamError: networking/provider failures
        LLMContractError: invalid JSON or wrong schema/shape
    """

    def __init__(self, client: OpenAI | None = None, max_slots: int = 48) -> None:
        self.client = client or OpenAI(api_key=settings.OPENAI_API_KEY)
        self._max_slots = max_slots

    def score(self, slots: list[TimeSlot], appointments: list[Appointment]) -> list[TimeSlot]:
        if not slots:
            return []
        if len(slots) > self._max_slots:
            raise LLMContractError(f"Score: too many slots for one prompt ({len(slots)}).")

        prompt = build_scoring_prompt(
            slots=[
                {"index": i, "start": s.start_time.strftime("%H:%M"), "end": s.end_time.strftime("%H:%M")}
                for i, s in enumerate(slots)
            ],
            busy=[
                {"start": a.start_time.strftime("%H:%M"), "end": a.end_time.strftime("%H:%M")}
                for a in appointments
                if a.blocks_calendar
            ],
        )
        data = _parse_json(self._call_text(prompt), what="score")

        if not isinstance(data, dict) or not isinstance(data.get("slots"), list):
            raise LLMContractError("Score: expected a JSON object with a 'slots' list.")

        annotations: dict[int, tuple[float, str]] = {}
        for item in data["slots"]:
            if not isinstance(item, dict):
                raise LLMContractError("Score: each slot entry must be an object.")
            try:
                index = int(item["index"])
                score = float(item["score"])
                reason = str(item.get("reason", "")).strip()[:80]
            except Exception as e:
                raise LLMContractError(f"Score: invalid slot entry shape: {e}")
            if not 0 <= index < len(slots):
                raise LLMContractError(f"Score: index {index} out of range.")
            if not 0.0 <= score <= 1.0:
                raise LLMContractError("Score: score must be between 0 and 1.")
            annotations[index] = (round(score, 3), reason or "ranked by assistant")

        if len(annotations) != len(slots):
            raise LLMContractError("Score: missing entries for some slots.")

        return [slot.annotated(*annotations[i]) for i, slot in enumerate(slots)]

    def _call_text(self, prompt: str) -> str:
        try:
            resp = self.client.chat.completions.create(
                model=settings.OPENAI_MODEL_SCORING,
                messages=[
                    {"role": "system", "content": "Return only valid JSON. Do not include markdown or extra text."},
                    {"role": "user", "content": prompt},
                ],
                temperature=settings.OPENAI_TEMPERATURE_SCORING,
                max_tokens=1400,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            raise LLMUpstreamError(f"OpenAI API error: {e}") from e

        content = (resp.choices[0].message.content or "").strip() if resp.choices else ""
        if not content:
            raise LLMContractError("LLM returned empty response text.")

        return content


def _parse_json(text: str, what: str) -> Any:
    try:
        return json.loads(text)
    except Exception:
        snippet = text[:200].replace("\n", " ")
        raise LLMContractError(f"{what.capitalize()}: invalid JSON. Snippet: {snippet!r}")
