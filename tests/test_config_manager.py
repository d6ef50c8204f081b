import itertools
import json

import pytest

from event_render.config_manager import (
    REQUIRED_LIGHTING_KEYS,
    load_lighting_config,
    parse_lighting_config,
    save_lighting_config,
    serialize_lighting_config,
)
from event_render.exceptions import InvalidLightingConfigError
from event_render.schemas import (ColorTemperature, ContrastEnhancement, ExposureCompensation,
                                  LightingConfig, LightingType)


VALID_CONFIG = {
    "lightingType": "sunset",
    "advancedLightingInstructions": "Guirnaldas de luz sobre la pista.",
    "colorTemperature": "warm",
    "exposureCompensation": "brighter",
    "contrastEnhancement": "soft",
}


ALL_SELECTIONS = list(itertools.product(
    LightingType, ColorTemperature, ExposureCompensation, ContrastEnhancement,
    ["", "Guirnaldas de luz cálida sobre la pista."],
))


@pytest.mark.parametrize(
    "lighting_type, color_temperature, exposure, contrast, advanced", ALL_SELECTIONS
)
def test_save_then_load_reproduces_selection(tmp_path, lighting_type, color_temperature, exposure, contrast, advanced):
    config = LightingConfig(
        lightingType=lighting_type,
        advancedLightingInstructions=advanced,
        colorTemperature=color_temperature,
        exposureCompensation=exposure,
        contrastEnhancement=contrast,
    )
    path = save_lighting_config(config, tmp_path / "lighting_config.json")
    assert load_lighting_config(path) == config


def test_serialized_file_uses_two_space_indent_and_wire_keys():
    text = serialize_lighting_config(LightingConfig(**VALID_CONFIG))

    assert json.loads(text) == VALID_CONFIG
    assert list(json.loads(text)) == list(REQUIRED_LIGHTING_KEYS)
    assert '\n  "lightingType": "sunset"' in text


@pytest.mark.parametrize("missing_key", REQUIRED_LIGHTING_KEYS)
def test_missing_key_is_rejected(missing_key):
    data = {k: v for k, v in VALID_CONFIG.items() if k != missing_key}
    with pytest.raises(InvalidLightingConfigError, match="no válido o incompleto"):
        parse_lighting_config(json.dumps(data))


def test_empty_advanced_instructions_are_accepted():
    config = parse_lighting_config(json.dumps({**VALID_CONFIG, "advancedLightingInstructions": ""}))
    assert config.advancedLightingInstructions == ""


def test_unknown_enum_value_is_rejected():
    with pytest.raises(InvalidLightingConfigError):
        parse_lighting_config(json.dumps({**VALID_CONFIG, "colorTemperature": "purple"}))


def test_corrupt_json_is_rejected():
    with pytest.raises(InvalidLightingConfigError, match="JSON corrupto"):
        parse_lighting_config("{not json")


def test_non_object_json_is_rejected():
    with pytest.raises(InvalidLightingConfigError):
        parse_lighting_config("[1, 2, 3]")


def test_missing_file_is_reported(tmp_path):
    with pytest.raises(InvalidLightingConfigError, match="Error al leer"):
        load_lighting_config(tmp_path / "nope.json")
