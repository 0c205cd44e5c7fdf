"""
OCR Engine Factory

Registry of named OCR engines. The pixel font engine is always present;
applications can add their own engines next to it.
"""

import logging
from pathlib import Path
from typing import Dict, List, Type

from .base import OCREngine
from .engine import FontOCREngine

logger = logging.getLogger(__name__)


# Engine name -> engine class
_ENGINES: Dict[str, Type[OCREngine]] = {
    "font": FontOCREngine,
}


def create_engine(engine_type: str = "font", **config) -> OCREngine:
    """
    Build a configured engine.

    Args:
        engine_type: Registered engine name ("font" reads a calibrated
            pixel font)
        **config: Passed to the engine's configure(). The font engine
            takes font, font_path and collector.

    Returns:
        New OCREngine instance

    Raises:
        ValueError: For an unregistered engine name

    Example:
        engine = create_engine("font", font_path="fonts/chat.json")
        result = engine.process(image, (255, 255, 0), x=40, y=12)
        print(result.text)
    """
    try:
        engine_class = _ENGINES[engine_type]
    except KeyError:
        raise ValueError(
            f"Unknown engine type: {engine_type}. Available: {', '.join(_ENGINES)}"
        ) from None

    if config.get("font_path") is not None:
        config["font_path"] = Path(config["font_path"])

    engine = engine_class()
    if config:
        engine.configure(**config)
    logger.debug(f"Created {engine_type} engine")
    return engine


def register_engine(name: str, engine_class: type) -> None:
    """
    Make an engine class available to create_engine.

    An existing registration under the same name is replaced.

    Raises:
        TypeError: If engine_class does not derive from OCREngine
    """
    if not (isinstance(engine_class, type) and issubclass(engine_class, OCREngine)):
        raise TypeError(f"{engine_class!r} is not an OCREngine subclass")
    _ENGINES[name] = engine_class


def available_engines() -> List[str]:
    """Names accepted by create_engine, in registration order."""
    return list(_ENGINES)
