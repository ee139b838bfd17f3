"""Settings loaded from the packaged YAML defaults plus an optional user file."""

import logging
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULTS_PATH = Path(__file__).parent / "config" / "defaults.yml"


@dataclass
class ExtractionSettings:
    chk_token: str = "CHK"
    currency_token: str = "SAR"
    unknown: str = "unknown"
    card_types: List[str] = field(default_factory=lambda: [
        "VISA", "MASTERCARD", "mada", "AMEX", "DEBIT MASTERCARD", "DEBIT VISA", "GCC",
    ])


@dataclass
class OCRSettings:
    language: str = "eng"
    timeout: float = 30.0
    oem: int = 3
    psm: int = 6


@dataclass
class CameraSettings:
    devices: List[int] = field(default_factory=lambda: [1, 0])
    warmup_frames: int = 5


@dataclass
class ExportSettings:
    sheet_title: str = "Ledger"
    include_summary: bool = False


@dataclass
class Settings:
    """All runtime settings, one section per collaborator."""
    extraction: ExtractionSettings = field(default_factory=ExtractionSettings)
    ocr: OCRSettings = field(default_factory=OCRSettings)
    camera: CameraSettings = field(default_factory=CameraSettings)
    export: ExportSettings = field(default_factory=ExportSettings)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        sections = {
            'extraction': ExtractionSettings,
            'ocr': OCRSettings,
            'camera': CameraSettings,
            'export': ExportSettings,
        }
        kwargs = {}
        for name, section_cls in sections.items():
            values = data.get(name) or {}
            known = set(section_cls.__dataclass_fields__)
            unknown_keys = set(values) - known
            if unknown_keys:
                logger.warning(f"Ignoring unknown {name} settings: {sorted(unknown_keys)}")
            kwargs[name] = section_cls(**{k: v for k, v in values.items() if k in known})
        return cls(**kwargs)


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except Exception as e:
        logger.error(f"Failed to load settings from {path}: {e}")
        raise
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return data


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = deepcopy(base)
    for section, values in override.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Load settings from the packaged defaults, overridden by a user file.

    Args:
        path: Optional YAML file whose sections override the defaults key by key

    Returns:
        Settings instance
    """
    data = _read_yaml(DEFAULTS_PATH) if DEFAULTS_PATH.exists() else {}
    if path is not None:
        data = _merge(data, _read_yaml(Path(path)))
        logger.info(f"Loaded settings override from {path}")
    return Settings.from_dict(data)
