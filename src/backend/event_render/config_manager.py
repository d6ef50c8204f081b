import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from event_render.config import settings
from event_render.exceptions import InvalidLightingConfigError
from event_render.schemas import LightingConfig

logger = logging.getLogger(__name__)

LIGHTING_CONFIG_FILENAME = 'lighting_config.json'
REQUIRED_LIGHTING_KEYS = (
    'lightingType',
    'advancedLightingInstructions',
    'colorTemperature',
    'exposureCompensation',
    'contrastEnhancement',
)

INCOMPLETE_CONFIG_MESSAGE = 'Formato de configuración de iluminación no válido o incompleto.'
CORRUPT_CONFIG_MESSAGE = 'Archivo JSON corrupto.'


def serialize_lighting_config(config: LightingConfig) -> str:
    return json.dumps(config.model_dump(mode='json'), indent=2, ensure_ascii=False)


def parse_lighting_config(content: Union[str, bytes]) -> LightingConfig:
    """
    Parses a lighting configuration document. Every one of the five keys must be
    present (the advanced instructions may be an empty string); anything else is
    rejected as a whole.
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidLightingConfigError(CORRUPT_CONFIG_MESSAGE)

    if not isinstance(data, dict):
        raise InvalidLightingConfigError(INCOMPLETE_CONFIG_MESSAGE)
    missing = [key for key in REQUIRED_LIGHTING_KEYS if data.get(key) is None]
    if missing:
        logger.warning(f"Lighting configuration rejected, missing keys: {missing}")
        raise InvalidLightingConfigError(INCOMPLETE_CONFIG_MESSAGE)
    if not isinstance(data['advancedLightingInstructions'], str):
        raise InvalidLightingConfigError(INCOMPLETE_CONFIG_MESSAGE)

    try:
        return LightingConfig(**{key: data[key] for key in REQUIRED_LIGHTING_KEYS})
    except ValidationError as e:
        logger.warning(f"Lighting configuration rejected: {e}")
        raise InvalidLightingConfigError(INCOMPLETE_CONFIG_MESSAGE)


def save_lighting_config(config: LightingConfig, path: Optional[Union[str, Path]] = None) -> Path:
    config_path = Path(path or settings.LIGHTING_CONFIG_PATH)
    with open(config_path, 'w', encoding='utf-8') as f:
        f.write(serialize_lighting_config(config))
    logger.info(f"Lighting configuration saved to {config_path}")
    return config_path


def load_lighting_config(path: Optional[Union[str, Path]] = None) -> LightingConfig:
    config_path = Path(path or settings.LIGHTING_CONFIG_PATH)
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            content = f.read()
    except OSError as e:
        logger.error(f"Failed to read lighting configuration {config_path}: {e}")
        raise InvalidLightingConfigError('Error al leer el archivo de configuración.')
    return parse_lighting_config(content)
