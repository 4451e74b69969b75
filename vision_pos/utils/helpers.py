"""Helper utilities"""
import yaml
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union


Amount = Union[Decimal, int, float, str]


def load_config(config_path: str) -> Dict[str, Any]:
    """Load YAML configuration file"""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def normalize_label(label: str) -> str:
    """Trim and lowercase a classifier label for matching"""
    return label.strip().lower()


def to_amount(value: Amount) -> Decimal:
    """Convert a price or revenue value to Decimal"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def amount_to_json(amount: Decimal) -> Union[int, float]:
    """Render an amount as a JSON number, integral amounts as int"""
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def format_amount(amount: Decimal, currency: str) -> str:
    """Format an amount for display, e.g. '1,230 DZD'"""
    value = amount_to_json(amount)
    if isinstance(value, int):
        return f"{value:,} {currency}"
    return f"{value:,.2f} {currency}"


def centered_square(width: int, height: int, ratio: float) -> Tuple[float, float, float]:
    """Get (x, y, side) of a square centered in a width x height frame"""
    side = min(width, height) * ratio
    return (width - side) / 2, (height - side) / 2, side


def frame_size(frame: Optional[Any]) -> Optional[Tuple[int, int]]:
    """Get (width, height) of a frame, or None if it has no pixels yet"""
    if frame is None:
        return None
    shape = getattr(frame, "shape", None)
    if shape is None or len(shape) < 2:
        return None
    height, width = int(shape[0]), int(shape[1])
    if width == 0 or height == 0:
        return None
    return width, height
