import os
import yaml
from pydantic import BaseModel
from typing import Optional
from pathlib import Path


class AppConfig(BaseModel):
    DESCRIPTION_MODEL: str = "gemini-3-pro-image-preview"
    REFINE_MODEL: str = "gemini-3-flash-preview"
    RENDER_MODEL: str = "gemini-3-pro-image-preview"
    SAFETY_THRESHOLD: str = "BLOCK_MEDIUM_AND_ABOVE"
    RENDER_INCLUDE_TEXT: bool = True
    RENDER_ASPECT_RATIO: Optional[str] = None
    APPEND_STRICT_LOCK: bool = True
    MAX_REFERENCE_IMAGES: int = 5
    LIGHTING_CONFIG_PATH: str = "lighting_config.json"
    BILLING_DOCS_URL: str = "ai.google.dev/gemini-api/docs/billing"
    ALLOW_KEY_SELECTION: bool = False
    USE_VERTEXAI: bool = False
    PROJECT_ID: Optional[str] = None
    LOCATION: str = "global"
    FRONTEND_URL: str = "http://localhost:3000"
    TASK_WORKERS: int = 4
    SESSION_MAX_AGE: int = 7200
    TASK_RETENTION_SECONDS: int = 600
    GEMINI_API_KEY: Optional[str] = None


def load_config() -> AppConfig:
    config_path = Path(os.environ.get(
        'EVENT_RENDER_CONFIG',
        Path(__file__).parent.parent / 'configs' / 'app-config.yaml'
    ))
    config_data = {}
    if config_path.exists():
        with open(config_path, 'r') as config_file:
            config_data = yaml.safe_load(config_file) or {}

    api_key = os.environ.get('GEMINI_API_KEY') or os.environ.get('API_KEY')
    if api_key:
        config_data['GEMINI_API_KEY'] = api_key
    return AppConfig(**config_data)


settings = load_config()
