import os

ENV_VAR = "APP_ENV"

_MODULES = {
    "prod": "config.production",
    "production": "config.production",
    "test": "config.testing",
    "testing": "config.testing",
}


def get_settings_module() -> str:
    # APP_ENV picks the settings module; anything unknown falls back to development
    env = os.getenv(ENV_VAR, "development").strip().lower()
    return _MODULES.get(env, "config.development")
