"""Codec for the persisted store: YAML for .yaml/.yml, JSON otherwise."""

import json
from typing import Any, Dict

import yaml


class FormatError(ValueError):
    """Persisted document is unparseable or not a mapping at the top level."""


def is_yaml_extension(ext: str) -> bool:
    return (ext or "").lower() in {".yaml", ".yml"}


def decode(raw: str, ext: str) -> Dict[str, Any]:
    try:
        if is_yaml_extension(ext):
            parsed = yaml.safe_load(raw)
        else:
            parsed = json.loads(raw)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise FormatError(f"cannot parse document: {exc}") from exc
    if not isinstance(parsed, dict):
        raise FormatError("document top level must be a mapping")
    return parsed


def encode(data: Dict[str, Any], ext: str) -> str:
    if is_yaml_extension(ext):
        return yaml.safe_dump(
            data,
            allow_unicode=True,
            sort_keys=False,
            default_flow_style=False,
            width=float("inf"),
        )
    return json.dumps(data, ensure_ascii=False, indent=2)


__all__ = ["FormatError", "decode", "encode", "is_yaml_extension"]
