from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from drawing.nodes import DrawStyle

CONFIG_ENV = "ANNOTATION_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).with_name("default.yaml")

WILDCARD = "*"


class PositionCfg(BaseModel):
    # decimals kept when building position keys
    precision: int = 2

    @field_validator("precision")
    @classmethod
    def _non_negative(cls, v):
        if v < 0:
            raise ValueError("precision must be >= 0")
        return v


def _default_label_texts() -> dict[str, dict[str, str]]:
    return {
        "ruler": {WILDCARD: "{length}"},
        "circle": {WILDCARD: "{surface}"},
        "ellipse": {WILDCARD: "{surface}"},
        "rectangle": {WILDCARD: "{surface}"},
        "roi": {WILDCARD: "{surface}"},
        "protractor": {WILDCARD: "{angle}"},
    }


class LabelsCfg(BaseModel):
    # factory name -> modality (or "*") -> text expression
    texts: dict[str, dict[str, str]] = Field(default_factory=_default_label_texts)

    def for_factory(self, name: str) -> dict[str, str]:
        return dict(self.texts.get(name, {}))


class StyleCfg(BaseModel):
    line_colour: str = "#ffff80"
    stroke_width: float = 2.0
    font_size: float = 10.0
    font_family: str = "Verdana"
    text_padding: float = 3.0
    anchor_radius: float = 3.0
    tag_opacity: float = 0.2

    def to_draw_style(self) -> DrawStyle:
        return DrawStyle(**self.model_dump())


class LoggingCfg(BaseModel):
    level: str = "INFO"
    json_logs: bool = True


class AnnotationConfig(BaseModel):
    position: PositionCfg = Field(default_factory=PositionCfg)
    labels: LabelsCfg = Field(default_factory=LabelsCfg)
    style: StyleCfg = Field(default_factory=StyleCfg)
    logging: LoggingCfg = Field(default_factory=LoggingCfg)


def load_config(path: str | Path | None = None) -> AnnotationConfig:
    """
    Load settings from YAML.

    Without an explicit path, $ANNOTATION_CONFIG is used, then the packaged
    default.yaml. An empty document gives the defaults.
    """
    cfg_path = Path(path or os.getenv(CONFIG_ENV) or DEFAULT_CONFIG_PATH)
    raw: Any = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config YAML must be a mapping, got {type(raw).__name__}")
    return AnnotationConfig(**raw)
