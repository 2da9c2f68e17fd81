#!filepath: lendrelay/config/secret_config.py
from typing import Optional

from pydantic import BaseModel, SecretStr, field_validator

# placeholders shipped in generated .env.example files
_PLACEHOLDER_KEYS = {"", "0xYOUR_RELAYER_PRIVATE_KEY_HERE", "your_relayer_private_key_here"}


class SecretConfig(BaseModel):
    relay_private_key: Optional[SecretStr] = None

    @field_validator("relay_private_key", mode="before")
    @classmethod
    def drop_placeholder(cls, v):
        if isinstance(v, SecretStr):
            v = v.get_secret_value()
        if v is None or str(v).strip() in _PLACEHOLDER_KEYS:
            return None
        return str(v).strip()
