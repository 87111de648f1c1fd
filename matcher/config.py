"""Configuration loader for the parts matcher."""

import logging
import os
import yaml
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional

from .item_parser import NAME_REPLACEMENTS, HEADER_KEYWORDS, FURNITURE_KEYWORDS
from .part_matcher import DEFAULT_MATCH_THRESHOLD

logger = logging.getLogger(__name__)

CONFIG_FILENAME = 'matcher_config.yaml'

# Environment overrides (a .env file is loaded by main.py)
ENV_CATALOG_PATH = 'PARTS_CATALOG_PATH'
ENV_MATCH_THRESHOLD = 'PARTS_MATCH_THRESHOLD'


@dataclass
class OCRConfig:
    lang: str = "korean"
    preprocess: bool = True
    binarize_threshold: int = 200
    min_confidence: float = 0.5


@dataclass
class MatcherConfig:
    catalog_path: str = "mydata.xlsx"
    match_threshold: float = DEFAULT_MATCH_THRESHOLD
    name_replacements: Dict[str, str] = field(default_factory=lambda: dict(NAME_REPLACEMENTS))
    header_keywords: List[str] = field(default_factory=lambda: list(HEADER_KEYWORDS))
    furniture_keywords: List[str] = field(default_factory=lambda: list(FURNITURE_KEYWORDS))
    ocr: OCRConfig = field(default_factory=OCRConfig)


def default_search_paths() -> List[Path]:
    return [
        Path.cwd() / 'config' / CONFIG_FILENAME,
        Path(__file__).parent.parent / 'config' / CONFIG_FILENAME,
        Path.home() / '.partsmatcher' / CONFIG_FILENAME,
    ]


def load_config(config_path: Optional[str] = None) -> MatcherConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, the default locations
            are searched and built-in defaults are used when none exists.

    Returns:
        MatcherConfig object

    Raises:
        FileNotFoundError: an explicit config_path does not exist
        ValueError: malformed YAML, an unknown ocr setting, a non-string
            abbreviation key, or a threshold outside [0, 1]
    """
    if config_path is not None:
        if not Path(config_path).exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for path in default_search_paths():
            if path.exists():
                config_path = str(path)
                break

    raw = {}
    if config_path:
        with open(config_path, encoding='utf-8') as f:
            try:
                raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Malformed YAML in {config_path}: {e}") from e
        if not isinstance(raw, dict):
            raise ValueError(f"Config {config_path} must be a mapping, got {type(raw).__name__}")
        logger.info(f"Loaded config: {config_path}")

    config = _from_dict(raw)
    _apply_env_overrides(config)

    if not 0.0 <= config.match_threshold <= 1.0:
        raise ValueError(f"match_threshold must be between 0 and 1, got {config.match_threshold}")

    return config


def _from_dict(raw: Dict) -> MatcherConfig:
    config = MatcherConfig(ocr=_ocr_from_dict(raw.get('ocr') or {}))

    if 'catalog_path' in raw:
        config.catalog_path = str(raw['catalog_path'])
    if 'match_threshold' in raw:
        config.match_threshold = float(raw['match_threshold'])

    # Extra abbreviations extend the defaults unless replace_default_names is set
    replacements = raw.get('name_replacements') or {}
    if not isinstance(replacements, dict):
        raise ValueError("name_replacements must be a mapping of abbreviation -> name")
    if raw.get('replace_default_names'):
        config.name_replacements = {}
    # Unquoted YES/NO/ON/OFF keys load as booleans
    bad_keys = [k for k in replacements if not isinstance(k, str)]
    if bad_keys:
        raise ValueError(f"name_replacements keys must be strings (quote them in YAML): {bad_keys}")
    config.name_replacements.update({k: str(v) for k, v in replacements.items()})

    if raw.get('header_keywords'):
        config.header_keywords = [str(k) for k in raw['header_keywords']]
    if raw.get('furniture_keywords'):
        config.furniture_keywords = [str(k) for k in raw['furniture_keywords']]

    return config


def _apply_env_overrides(config: MatcherConfig) -> None:
    catalog_path = os.getenv(ENV_CATALOG_PATH)
    if catalog_path:
        config.catalog_path = catalog_path

    threshold = os.getenv(ENV_MATCH_THRESHOLD)
    if threshold:
        try:
            config.match_threshold = float(threshold)
        except ValueError:
            logger.warning(f"Ignoring invalid {ENV_MATCH_THRESHOLD}={threshold!r}")


def _ocr_from_dict(raw_ocr: Dict) -> OCRConfig:
    if not isinstance(raw_ocr, dict):
        raise ValueError(f"ocr section must be a mapping, got {type(raw_ocr).__name__}")

    known = {f.name for f in fields(OCRConfig)}
    unknown = sorted(str(k) for k in raw_ocr if k not in known)
    if unknown:
        raise ValueError(f"Unknown ocr settings: {', '.join(unknown)} (expected {', '.join(sorted(known))})")

    return OCRConfig(**raw_ocr)
