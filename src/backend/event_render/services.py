import time
import logging
from io import BytesIO
from typing import Callable, List, Optional

from google.genai import errors as genai_errors
from google.genai import types
from PIL import Image, UnidentifiedImageError

from event_render.config import settings
from event_render.encoding import bytes_to_data_url, data_url_to_bytes, payload_to_part
from event_render.exceptions import (
    INVALID_KEY_MARKER,
    InvalidApiKeyError,
    MissingInputError,
    NoImageInResponseError,
    PromptRefinementError,
    SceneDetectionError,
    is_invalid_key_error,
)
from event_render.prompts import (
    ADVANCED_INSTRUCTIONS_PREFIX,
    COLOR_TEMPERATURE_CLAUSES,
    CONTRAST_CLAUSES,
    EXPOSURE_CLAUSES,
    LIGHTING_DETAILS,
    REFERENCE_IMAGE_INSTRUCTION,
    REFINEMENT_PROMPT,
    SCENE_DETECTION_PROMPT,
    STRICT_LOCK_SUFFIX,
)
from event_render.schemas import ImagePayload, LightingConfig, RenderResult

logger = logging.getLogger(__name__)

HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)

PROGRESS_REFINING = "Refinando prompt para la escena..."
PROGRESS_GENERATING = "Generando render para la escena..."
MISSING_DESCRIPTION_ERROR = "Error: Descripción de la escena faltante."
INTERNAL_ERROR_MESSAGE = (
    "Error interno del servidor (500) al generar la imagen. Esto puede ser un problema temporal del servicio "
    "o que la combinación de entradas (imágenes y prompt) sea demasiado compleja para el modelo. "
    "Por favor, intenta:\n"
    "1. Reducir la complejidad de la descripción de la escena.\n"
    "2. Usar menos imágenes de referencia o de menor resolución.\n"
    "3. Reintentar la generación en unos minutos."
)


def build_safety_settings(threshold: Optional[str] = None) -> List[types.SafetySetting]:
    threshold = threshold or settings.SAFETY_THRESHOLD
    return [types.SafetySetting(category=category, threshold=threshold) for category in HARM_CATEGORIES]


def billing_message(error: Exception) -> str:
    return f"{error} Un enlace a la documentación de facturación se puede encontrar en {settings.BILLING_DOCS_URL}."


def build_lighting_instructions(lighting: LightingConfig) -> str:
    clauses = [
        COLOR_TEMPERATURE_CLAUSES[lighting.colorTemperature],
        EXPOSURE_CLAUSES[lighting.exposureCompensation],
        CONTRAST_CLAUSES[lighting.contrastEnhancement],
    ]
    if lighting.advancedLightingInstructions:
        clauses.append(ADVANCED_INSTRUCTIONS_PREFIX + lighting.advancedLightingInstructions)
    return " ".join(clauses)


def build_refinement_prompt(
        scene_description: str,
        lighting: LightingConfig,
        has_reference_images: bool = False
) -> str:
    return REFINEMENT_PROMPT.format(
        lighting_details=LIGHTING_DETAILS[lighting.lightingType],
        advanced_lighting_command=build_lighting_instructions(lighting),
        scene_description=scene_description,
        reference_image_instruction=REFERENCE_IMAGE_INSTRUCTION if has_reference_images else "",
    )


def extract_image_data_url(response: types.GenerateContentResponse, prompt: str) -> str:
    """
    Returns the first inline image of the first candidate as a data URL.
    Raises NoImageInResponseError, quoting any text the model sent back instead.
    """
    parts = []
    if response.candidates:
        content = response.candidates[0].content
        if content and content.parts:
            parts = content.parts

    for part in parts:
        if part.inline_data and part.inline_data.data:
            return bytes_to_data_url(part.inline_data.data, part.inline_data.mime_type or "image/png")

    text_output = next((part.text for part in parts if part.text), None)
    logger.error(f"API response did not contain an image. Full response: {response.model_dump_json(exclude_none=True)}")
    logger.error(f"Prompt used: {prompt}")
    model_message = f'Mensaje del modelo: "{text_output}" ' if text_output else ""
    raise NoImageInResponseError(
        f"No se encontró imagen en la respuesta de la API. {model_message}"
        "Por favor, revisa el prompt y la imagen de entrada.",
        model_text=text_output,
    )


class RenderService:
    def __init__(self, genai_client):
        self.genai_client = genai_client

    def detect_scene_elements(self, images: List[ImagePayload]) -> str:
        """
        Produces a literal, structured material inventory of the SketchUp capture.
        Only the first image is meaningful to the rest of the pipeline.
        """
        if not images:
            raise MissingInputError("No images provided for scene detection.")

        logger.info(f"Detecting scene elements with model {settings.DESCRIPTION_MODEL}.")
        contents = [payload_to_part(image) for image in images]
        contents.append(types.Part.from_text(text=SCENE_DETECTION_PROMPT))
        try:
            response = self.genai_client.models.generate_content(
                model=settings.DESCRIPTION_MODEL,
                contents=contents,
                config=types.GenerateContentConfig(safety_settings=build_safety_settings()),
            )
        except Exception as e:
            if INVALID_KEY_MARKER in str(e):
                raise InvalidApiKeyError() from e
            raise SceneDetectionError(f"Error al detectar elementos de la escena: {e}") from e

        detected_text = (response.text or "").strip()
        if not detected_text:
            raise SceneDetectionError(
                "No se pudieron detectar elementos de la escena. Por favor, revisa la imagen."
            )
        logger.info("Scene elements detected successfully.")
        return detected_text

    def refine_prompt_for_generation(
            self,
            scene_description: str,
            lighting: LightingConfig,
            has_reference_images: bool = False
    ) -> str:
        refinement_prompt = build_refinement_prompt(scene_description, lighting, has_reference_images)
        logger.info(f"Refining prompt with model {settings.REFINE_MODEL}.")
        try:
            response = self.genai_client.models.generate_content(
                model=settings.REFINE_MODEL,
                contents=refinement_prompt,
            )
        except Exception as e:
            if INVALID_KEY_MARKER in str(e):
                raise InvalidApiKeyError() from e
            raise PromptRefinementError(f"Error al refinar el prompt: {e}") from e

        final_prompt = (response.text or "").strip()
        if not final_prompt:
            raise PromptRefinementError("No se pudo refinar el prompt.")
        return final_prompt

    def generate_event_render(
            self,
            original_image: ImagePayload,
            final_prompt: str,
            reference_images: List[ImagePayload]
    ) -> str:
        contents = [payload_to_part(original_image)]
        contents.extend(payload_to_part(image) for image in reference_images)
        contents.append(types.Part.from_text(text=final_prompt))

        modalities = ["IMAGE", "TEXT"] if settings.RENDER_INCLUDE_TEXT else ["IMAGE"]
        image_config = None
        if settings.RENDER_ASPECT_RATIO:
            image_config = types.ImageConfig(aspect_ratio=settings.RENDER_ASPECT_RATIO)
        config = types.GenerateContentConfig(
            response_modalities=modalities,
            safety_settings=build_safety_settings(),
            image_config=image_config,
        )

        start_time = time.time()
        try:
            response = self.genai_client.models.generate_content(
                model=settings.RENDER_MODEL,
                contents=contents,
                config=config,
            )
        except Exception as e:
            if INVALID_KEY_MARKER in str(e):
                raise InvalidApiKeyError() from e
            raise

        image_url = extract_image_data_url(response, final_prompt)
        self._log_render(image_url, time.time() - start_time)
        return image_url

    def _log_render(self, image_url: str, duration: float):
        data, mime_type = data_url_to_bytes(image_url)
        try:
            with Image.open(BytesIO(data)) as img:
                resolution = f"{img.width}x{img.height}"
        except (UnidentifiedImageError, OSError):
            resolution = "unknown"
        logger.info(f"Render generated in {duration:.1f}s ({mime_type}, {resolution}).")

    def generate_single_render(
            self,
            sketchup_image: ImagePayload,
            scene_description: str,
            reference_images: List[ImagePayload],
            lighting: LightingConfig,
            on_progress: Callable[[str], None]
    ) -> RenderResult:
        """
        Refines the prompt and renders the scene. Never raises: every failure is
        returned as RenderResult.error.
        """
        if not scene_description or not scene_description.strip():
            return RenderResult(error=MISSING_DESCRIPTION_ERROR)

        try:
            on_progress(PROGRESS_REFINING)
            final_prompt = self.refine_prompt_for_generation(
                scene_description,
                lighting,
                has_reference_images=len(reference_images) > 0,
            )
            if settings.APPEND_STRICT_LOCK:
                final_prompt = final_prompt + STRICT_LOCK_SUFFIX
            logger.info(f"Final prompt for the scene: {final_prompt}")

            on_progress(PROGRESS_GENERATING)
            image_url = self.generate_event_render(sketchup_image, final_prompt, reference_images)
            return RenderResult(url=image_url)
        except Exception as e:
            logger.error(f"Error generating render: {e}", exc_info=True)
            if is_invalid_key_error(e):
                return RenderResult(error=billing_message(e), invalid_api_key=True)
            if (
                isinstance(e, genai_errors.APIError)
                and e.code == 500
                and "Internal error encountered" in (e.message or "")
            ):
                return RenderResult(error=INTERNAL_ERROR_MESSAGE)
            return RenderResult(error=f"Error al generar la escena: {str(e) or 'Error desconocido'}.")
