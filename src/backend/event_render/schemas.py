from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import Optional, List


class LightingType(str, Enum):
    DAY = "day"
    SUNSET = "sunset"
    NIGHT = "night"


class ColorTemperature(str, Enum):
    WARM = "warm"
    NEUTRAL = "neutral"
    COOL = "cool"
    GOLDEN = "golden"


class ExposureCompensation(str, Enum):
    STANDARD = "standard"
    BRIGHTER = "brighter"
    DARKER = "darker"
    VERY_BRIGHT = "very_bright"
    VERY_DARK = "very_dark"


class ContrastEnhancement(str, Enum):
    NATURAL = "natural"
    ENHANCED = "enhanced"
    SOFT = "soft"
    HIGH_CONTRAST = "high_contrast"
    LOW_CONTRAST = "low_contrast"


class Activity(str, Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    GENERATING = "generating"


class LightingConfig(BaseModel):
    """Lighting selection, serialized as-is to lighting_config.json."""
    lightingType: LightingType = LightingType.DAY
    advancedLightingInstructions: str = ""
    colorTemperature: ColorTemperature = ColorTemperature.NEUTRAL
    exposureCompensation: ExposureCompensation = ExposureCompensation.STANDARD
    contrastEnhancement: ContrastEnhancement = ContrastEnhancement.NATURAL


class ImagePayload(BaseModel, frozen=True):
    data: str = Field(..., description="Base64 encoded image bytes, without any data URL prefix.")
    mime_type: str
    filename: Optional[str] = None


class RenderResult(BaseModel):
    url: Optional[str] = None
    error: Optional[str] = None
    invalid_api_key: bool = Field(False, exclude=True)

    @model_validator(mode="after")
    def check_exactly_one(self):
        if (self.url is None) == (self.error is None):
            raise ValueError("Exactly one of url or error must be set.")
        return self


class DescriptionUpdate(BaseModel):
    scene_description: str


class DetectionResponse(BaseModel):
    scene_description: str


class ReferenceImagesResponse(BaseModel):
    reference_images: List[str]
    warning: Optional[str] = None


class SceneSummary(BaseModel):
    has_image: bool
    image_filename: Optional[str] = None
    scene_description: str
    reference_images: List[str]
    lighting: LightingConfig
    render: Optional[RenderResult] = None
    progress: str = ""
    activity: Activity


class ApiKeySelection(BaseModel):
    api_key: str


class ApiKeyStatus(BaseModel):
    has_api_key: bool
    can_select_key: bool


class TaskResponse(BaseModel):
    task_id: str


class TaskStatus(BaseModel):
    status: str
    progress: List[str] = []
    result: Optional[dict] = None
    error: Optional[str] = None
