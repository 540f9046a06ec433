"""Configuration for SR measurement import."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from .codes import SR_SOP_CLASS_UIDS


class SRHandlerConfig(BaseModel):
    strict_pairing: bool = Field(
        default=False,
        description="Keep itemized labels only for NUM items that produced a coordinate",
    )
    auto_dispose: bool = Field(
        default=True,
        description="Stop watching for new display sets once every bindable coordinate is bound",
    )
    image_id_scheme: str = Field(default="dicomfile", min_length=1)
    supported_sop_class_uids: list[str] = Field(default_factory=lambda: list(SR_SOP_CLASS_UIDS))

    @field_validator("image_id_scheme")
    @classmethod
    def _strip_scheme(cls, value: str) -> str:
        cleaned = value.strip().rstrip(":")
        if not cleaned:
            raise ValueError("image_id_scheme must not be blank")
        return cleaned


def load_config(path: Path) -> SRHandlerConfig:
    """Load a handler config from a JSON or YAML file."""

    import json

    text = path.read_text()
    if path.suffix.lower() in {".yaml", ".yml"}:
        import yaml  # type: ignore

        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    return SRHandlerConfig.model_validate(data or {})
