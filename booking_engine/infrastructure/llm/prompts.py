import json


def build_scoring_prompt(slots: list[dict], busy: list[dict]) -> str:
    return (
        "You rank appointment slots for a service provider's day.\n"
        "Return ONLY valid JSON. No markdown. No extra text.\n"
        "Output schema:\n"
        "  {\"slots\": [{\"index\": 0, \"score\": 0.0, \"reason\": \"...\"}, ...]}\n"
        "Rules:\n"
        "  - Return exactly one entry per input slot, using its index.\n"
        "  - score is a number between 0 and 1; higher means a better fit.\n"
        "  - Prefer slots adjacent to existing bookings so the day has fewer idle gaps.\n"
        "  - Penalise slots that leave gaps too short to book anything.\n"
        "  - reason is a short tag (under 80 characters), e.g. \"adjacent to existing booking\".\n"
        "\n"
        "Existing bookings (start/end):\n"
        f"{json.dumps(busy, ensure_ascii=False)}\n"
        "\n"
        "Candidate slots (index/start/end):\n"
        f"{json.dumps(slots, ensure_ascii=False)}\n"
    )
