"""
Spreadsheet column detection and guest grouping via the OpenAI chat completions API
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from openai import OpenAI, APIError, AuthenticationError

from app.core.config import settings
from app.services.exceptions import ColumnInferenceError, UpstreamServiceError

logger = logging.getLogger(__name__)

INVALID_KEY_MESSAGE = "OpenAI API key is invalid or missing. Please check your configuration."
NO_NAME_COLUMN_MESSAGE = (
    "Could not identify name columns in the file. Please ensure there are columns for guest names "
    '(either "firstName/lastName" or "name").'
)

SYSTEM_PROMPT = """You analyse guest-list spreadsheets for an event seating tool.

You receive the first rows of a spreadsheet as comma-separated text. Identify
the zero-based columns that hold guest names: either one full-name column, or
separate first-name and last-name columns. Also identify the phone column and,
if present, an email column and a column that groups guests (table number,
group id, party, family, team).

Return ONLY a JSON object, no markdown and no explanation:
{
  "firstNameIndex": number | null,
  "lastNameIndex": number | null,
  "nameIndex": number | null,
  "phoneIndex": number | null,
  "emailIndex": number | null,
  "groupColumnIndex": number | null,
  "groupType": "table_explicit" | "group_id" | "party_name" | "family" | "corporate" | "plus_one" | null,
  "hasGroups": boolean,
  "hasHeader": boolean
}

Use "table_explicit" when the grouping column names tables explicitly.
Set hasGroups to true when guests appear to belong together, even without a
dedicated grouping column (shared surnames, plus-ones, colleagues).
Set hasHeader to true when the first row holds column titles."""

GROUPING_PROMPT = """You group event guests so that each group can share a table.

Each input line is a guest name, optionally followed by " | " and the guest's
group information. Group by explicit table or group identifiers first. Only
when there are none, group by shared surnames, plus-one companions or shared
companies. Groups have at least 2 members; split groups larger than 10.

Return ONLY a JSON array, no markdown and no explanation:
[
  {
    "id": string,
    "name": string,
    "members": [guest names exactly as provided],
    "suggestedTableSize": number,
    "groupType": "table_explicit" | "group_id" | "pattern" | "family" | "corporate" | "plus_one"
  }
]"""


@dataclass
class ColumnMapping:
    has_header: bool = False
    name_index: Optional[int] = None
    first_name_index: Optional[int] = None
    last_name_index: Optional[int] = None
    phone_index: Optional[int] = None
    email_index: Optional[int] = None
    group_column_index: Optional[int] = None
    group_type: Optional[str] = None
    has_groups: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "firstNameIndex": self.first_name_index,
            "lastNameIndex": self.last_name_index,
            "nameIndex": self.name_index,
            "phoneIndex": self.phone_index,
            "emailIndex": self.email_index,
            "groupColumnIndex": self.group_column_index,
            "groupType": self.group_type,
            "hasGroups": self.has_groups,
            "hasHeader": self.has_header,
        }


def sample_rows_as_text(rows: List[List[str]], sample_size: int) -> str:
    """Comma-joined text of the first rows; commas inside cells become ';'"""
    lines = []
    for row in rows[:sample_size]:
        lines.append(",".join("" if cell is None else str(cell).replace(",", ";") for cell in row))
    return "\n".join(lines)


def guests_as_text(guests: List[Dict[str, Any]]) -> str:
    lines = []
    for guest in guests:
        group_info = guest.get("groupInfo")
        lines.append(f"{guest['name']} | {group_info}" if group_info else guest["name"])
    return "\n".join(lines)


def _strip_fences(content: str, pattern: str = r"\{[\s\S]*\}") -> str:
    cleaned = content.strip()
    if cleaned.startswith("```"):
        cleaned = re.sub(r"^```(?:json)?\s*", "", cleaned)
        cleaned = re.sub(r"\s*```$", "", cleaned)
    match = re.search(pattern, cleaned)
    return match.group(0) if match else cleaned


def _optional_index(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


def parse_column_mapping(content: Optional[str]) -> ColumnMapping:
    """Parse the model reply; anything without a usable name column is rejected"""
    if not content:
        raise ColumnInferenceError("AI analysis returned an empty response.")
    try:
        data = json.loads(_strip_fences(content))
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse AI response: {e}; content: {content!r}")
        raise ColumnInferenceError("AI analysis returned an unreadable response. Please try again.") from e

    if not isinstance(data, dict):
        raise ColumnInferenceError("AI analysis returned an unexpected response.")

    mapping = ColumnMapping(
        has_header=bool(data.get("hasHeader")),
        name_index=_optional_index(data.get("nameIndex")),
        first_name_index=_optional_index(data.get("firstNameIndex")),
        last_name_index=_optional_index(data.get("lastNameIndex")),
        phone_index=_optional_index(data.get("phoneIndex")),
        email_index=_optional_index(data.get("emailIndex")),
        group_column_index=_optional_index(data.get("groupColumnIndex")),
        group_type=data.get("groupType") or None,
    )
    if mapping.name_index is None and mapping.first_name_index is None and mapping.last_name_index is None:
        raise ColumnInferenceError(NO_NAME_COLUMN_MESSAGE)

    mapping.has_groups = bool(data.get("hasGroups")) or mapping.group_column_index is not None
    return mapping


def parse_guest_groups(content: Optional[str]) -> List[Dict[str, Any]]:
    """Groups from the model reply; entries with fewer than two members are dropped"""
    if not content:
        return []
    try:
        data = json.loads(_strip_fences(content, r"\[[\s\S]*\]"))
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse AI grouping response: {e}; content: {content!r}")
        raise ColumnInferenceError("AI group detection returned an unreadable response.") from e

    if not isinstance(data, list):
        return []
    return [
        group for group in data
        if isinstance(group, dict) and isinstance(group.get("members"), list) and len(group["members"]) >= 2
    ]


class ColumnInferenceService:
    """Asks the language model which columns hold names and phone numbers, and how guests group"""

    def __init__(self, client: Optional[OpenAI] = None, model: Optional[str] = None) -> None:
        self._client = client
        self.model = model or settings.OPENAI_MODEL

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not settings.OPENAI_API_KEY:
                raise UpstreamServiceError(INVALID_KEY_MESSAGE)
            self._client = OpenAI(api_key=settings.OPENAI_API_KEY)
        return self._client

    def _complete(self, system_prompt: str, user_content: str, max_tokens: int) -> Optional[str]:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
                temperature=0,
                max_tokens=max_tokens,
            )
        except AuthenticationError as e:
            logger.error(f"OpenAI rejected the API key: {e}")
            raise UpstreamServiceError(INVALID_KEY_MESSAGE) from e
        except APIError as e:
            logger.error(f"AI analysis error: {e}")
            raise UpstreamServiceError(f"AI service error: {e.message}") from e

        return response.choices[0].message.content if response.choices else None

    def infer(self, rows: List[List[str]], sample_size: Optional[int] = None) -> ColumnMapping:
        sample = sample_rows_as_text(rows, sample_size or settings.IMPORT_SAMPLE_ROWS)
        content = self._complete(SYSTEM_PROMPT, f"Analyze this data sample:\n{sample}", max_tokens=300)
        mapping = parse_column_mapping(content)
        logger.info(f"Detected columns: {mapping.to_payload()}")
        return mapping

    def group_guests(self, guests: List[Dict[str, Any]], mapping: ColumnMapping) -> List[Dict[str, Any]]:
        content = self._complete(
            GROUPING_PROMPT,
            f"Group these guests based on the indicators:\n{guests_as_text(guests)}\n\nGroup type: {mapping.group_type}",
            max_tokens=1000,
        )
        groups = parse_guest_groups(content)
        logger.info(f"AI grouping suggested {len(groups)} groups for {len(guests)} guests")
        return groups
