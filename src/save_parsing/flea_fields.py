"""Read and edit the SavedFlea flags in a decoded save."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Union

log = logging.getLogger(__name__)

TRUE = "true"
FALSE = "false"
NOT_AVAILABLE = "n/a"
FLEA_VALUES = (TRUE, FALSE, NOT_AVAILABLE)

TARGET_FLEA_FIELDS = [
    "SavedFlea_Bone_06",
    "SavedFlea_Dock_16",
    "SavedFlea_Bone_East_05",
    "SavedFlea_Bone_East_17b",
    "SavedFlea_Ant_03",
    "SavedFlea_Greymoor_15b",
    "SavedFlea_Greymoor_06",
    "SavedFlea_Shellwood_03",
    "SavedFlea_Bone_East_10_Church",
    "SavedFlea_Coral_35",
    "SavedFlea_Dust_12",
    "SavedFlea_Dust_09",
    "SavedFlea_Belltown_04",
    "SavedFlea_Crawl_06",
    "SavedFlea_Slab_Cell",
    "SavedFlea_Shadow_28",
    "SavedFlea_Dock_03d",
    "SavedFlea_Under_23",
    "SavedFlea_Shadow_10",
    "SavedFlea_Song_14",
    "SavedFlea_Coral_24",
    "SavedFlea_Peak_05c",
    "SavedFlea_Library_09",
    "SavedFlea_Song_11",
    "SavedFlea_Library_01",
    "SavedFlea_Under_21",
    "SavedFlea_Slab_06",
]


@dataclass(frozen=True)
class FleaField:
    """One row of the flea table."""

    key: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"key": self.key, "value": self.value}


def _load(json_data: Union[str, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(json_data, str):
        return json.loads(json_data)
    return json_data


def extract_flea_fields(json_data: Union[str, Dict[str, Any]]) -> List[FleaField]:
    """Return the state of every tracked flea flag.

    Flags missing from ``playerData`` are reported as ``"n/a"``; so is every
    flag when the document cannot be read.
    """
    try:
        player_data = _load(json_data).get("playerData") or {}
        return [
            FleaField(field, (TRUE if player_data[field] else FALSE) if field in player_data else NOT_AVAILABLE)
            for field in TARGET_FLEA_FIELDS
        ]
    except (ValueError, TypeError, AttributeError, RecursionError) as e:
        log.warning(f"Error extracting flea fields: {e}")
        return [FleaField(field, NOT_AVAILABLE) for field in TARGET_FLEA_FIELDS]


def update_flea_fields(fields: List[FleaField], original_json: Union[str, Dict[str, Any]]) -> str:
    """Apply flea table values to the save and return it pretty-printed.

    ``"true"``/``"false"`` set the flag, ``"n/a"`` removes it. Unknown keys
    and values are ignored. If the save cannot be updated the original text
    is returned unchanged.
    """
    try:
        data = _load(original_json)
        player_data = data["playerData"]

        for field in fields:
            if field.key not in TARGET_FLEA_FIELDS:
                continue
            value = field.value.lower()
            if value == TRUE:
                player_data[field.key] = True
            elif value == FALSE:
                player_data[field.key] = False
            elif value == NOT_AVAILABLE:
                player_data.pop(field.key, None)

        return json.dumps(data, indent=2, ensure_ascii=False)
    except (ValueError, TypeError, KeyError, AttributeError, RecursionError) as e:
        log.warning(f"Error updating flea fields: {e}")
        if isinstance(original_json, str):
            return original_json
        return json.dumps(original_json, indent=2, ensure_ascii=False)
