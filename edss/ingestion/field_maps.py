#!/usr/bin/env python3
"""
EDSS — Field Dictionaries (v1)

A field dictionary maps each of the 8 canonical score roles to the key
under which a dataset stores it. Two dictionaries are built in:

- default:   English keys (visual_functions_score, ...)
- redcap_pt: Portuguese REDCap / REDONE.br keys (edss_func_visuais, ...)

Custom dictionaries are loaded from JSON:

    {
      "meta": {"name": "my_study", "locked": true},
      "fields": {"visual": "fs_visual", ..., "ambulation": "fs_ambulation"}
    }

Design:
- Deterministic
- Minimal validation (fail-closed): an incomplete dictionary is rejected
"""

from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Union

from edss.scoring.model import SCORE_ROLES

FIELDS_DEFAULT: Mapping[str, str] = MappingProxyType({
    "visual": "visual_functions_score",
    "brainstem": "brainstem_functions_score",
    "pyramidal": "pyramidal_functions_score",
    "cerebellar": "cerebellar_functions_score",
    "sensory": "sensory_functions_score",
    "bowelBladder": "bowel_and_bladder_functions_score",
    "cerebral": "cerebral_functions_score",
    "ambulation": "ambulation_score",
})

# REDCap projects of the REDONE.br registry (legacy names, typos included)
FIELDS_REDCAP_PT: Mapping[str, str] = MappingProxyType({
    "visual": "edss_func_visuais",
    "brainstem": "edss_cap_func_tronco_cereb",
    "pyramidal": "edss_cap_func_pirad",
    "cerebellar": "edss_cap_func_cereb",
    "sensory": "edss_cap_func_sensitivas",
    "bowelBladder": "edss_func_vesicais_e_instestinais",
    "cerebral": "edss_func_cerebrais",
    "ambulation": "edss_func_demabulacao_incapacidade",
})

BUILTIN_FIELD_MAPS: Mapping[str, Mapping[str, str]] = MappingProxyType({
    "default": FIELDS_DEFAULT,
    "redcap_pt": FIELDS_REDCAP_PT,
})


def _read_json(path: Path) -> Dict:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise SystemExit(f"Missing JSON: {path}")
    except json.JSONDecodeError as e:
        raise SystemExit(f"Invalid JSON: {path}\n{e}")


def check_field_map(field_map: Mapping[str, str], source: str = "field map") -> None:
    missing = [role for role in SCORE_ROLES if not field_map.get(role)]
    if missing:
        raise SystemExit(f"{source} missing roles: {', '.join(missing)}")
    for role in SCORE_ROLES:
        if not isinstance(field_map[role], str):
            raise SystemExit(f"{source}: key for '{role}' must be a string")


def load_field_map(path: Path) -> Dict[str, str]:
    obj = _read_json(path)
    if not isinstance(obj, dict):
        raise SystemExit(f"{path}: expected a JSON object")

    meta = obj.get("meta")
    if not isinstance(meta, dict) or meta.get("locked") is not True:
        raise SystemExit(f"{path.name} must have meta.locked=true")
    fields = obj.get("fields")
    if not isinstance(fields, dict):
        raise SystemExit(f"{path.name} missing fields dict")

    check_field_map(fields, source=path.name)
    return {role: fields[role] for role in SCORE_ROLES}


def get_field_map(name_or_path: Union[str, Path]) -> Mapping[str, str]:
    """Return a built-in dictionary by name, or load one from a JSON path."""
    if isinstance(name_or_path, str) and name_or_path in BUILTIN_FIELD_MAPS:
        return BUILTIN_FIELD_MAPS[name_or_path]
    path = Path(name_or_path)
    if path.suffix.lower() != ".json":
        raise SystemExit(
            f"Unknown field map '{name_or_path}'. "
            f"Use one of {sorted(BUILTIN_FIELD_MAPS)} or a .json file."
        )
    return load_field_map(path)


def resolve_keys(field_map: Mapping[str, str], suffix: str = "") -> Dict[str, str]:
    """
    Concrete record keys per role, with `suffix` appended to every key.

    The suffix supports longitudinal exports where each visit's fields carry
    a fixed ending (e.g. '_long').
    """
    check_field_map(field_map)
    return {role: f"{field_map[role]}{suffix}" for role in SCORE_ROLES}
