from __future__ import annotations

import logging
from typing import Any, Sequence

from drawing.factories.base import ShapeFactory
from drawing.factories.circle import CircleFactory
from drawing.factories.ellipse import EllipseFactory
from drawing.factories.protractor import ProtractorFactory
from drawing.factories.rectangle import RectangleFactory
from drawing.factories.roi import RoiFactory
from drawing.factories.ruler import RulerFactory
from shapes.base import ShapeKind, kind_of

logger = logging.getLogger(__name__)

DEFAULT_FACTORIES: dict[ShapeKind, ShapeFactory] = {
    ShapeKind.LINE: RulerFactory(),
    ShapeKind.CIRCLE: CircleFactory(),
    ShapeKind.ELLIPSE: EllipseFactory(),
    ShapeKind.RECTANGLE: RectangleFactory(),
    ShapeKind.ROI: RoiFactory(),
    ShapeKind.PROTRACTOR: ProtractorFactory(),
}


def get_factory(shape: Any, custom_factories: Sequence[ShapeFactory] | None = None) -> ShapeFactory | None:
    """
    Factory for a math shape: caller supplied ones first, then the defaults.

    Returns None (with a warning) when nothing handles the shape.
    """
    for factory in custom_factories or ():
        if factory.supports(shape):
            return factory
    kind = kind_of(shape)
    factory = DEFAULT_FACTORIES.get(kind) if kind is not None else None
    if factory is None or not factory.supports(shape):
        logger.warning("No shape factory found for %s", type(shape).__name__)
        return None
    return factory


def get_factory_by_name(name: str) -> ShapeFactory | None:
    for factory in DEFAULT_FACTORIES.values():
        if factory.name == name:
            return factory
    logger.warning("Unknown shape factory name: %s", name)
    return None
