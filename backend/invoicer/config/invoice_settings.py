"""
Utilities for loading invoice defaults and totals configuration.
"""
from __future__ import annotations

import os
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

CONFIG_PATH = Path(
    os.getenv(
        "INVOICE_SETTINGS_PATH",
        Path(__file__).resolve().parents[2] / "config" / "invoice_settings.yaml",
    )
)

DEFAULT_TAX_RATE = Decimal("0.10")
DEFAULT_FLOWER_TYPE = "LOOSE FLOWERS"


@lru_cache()
def load_invoice_settings() -> Dict[str, Any]:
    if not CONFIG_PATH.exists():
        return {}
    with open(CONFIG_PATH, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def _section(name: str) -> Dict[str, Any]:
    return load_invoice_settings().get(name) or {}


def get_tax_rate() -> Decimal:
    value = _section("totals").get("tax_rate")
    return Decimal(str(value)) if value is not None else DEFAULT_TAX_RATE


def get_discount() -> Decimal:
    return Decimal(str(_section("totals").get("discount") or 0))


def get_invoice_number_format() -> Tuple[str, int]:
    cfg = _section("invoice_numbers")
    return str(cfg.get("prefix") or "KS").upper(), int(cfg.get("width") or 4)


def get_default_flower_type() -> str:
    return _section("defaults").get("flower_type") or DEFAULT_FLOWER_TYPE


def get_default_freight_terms() -> str:
    return _section("defaults").get("freight_terms") or "Pre Paid"


def get_default_box_dimensions() -> Dict[str, float]:
    dims = _section("defaults").get("box_dimensions") or {}
    return {
        "length": float(dims.get("length", 30.0)),
        "width": float(dims.get("width", 20.0)),
        "height": float(dims.get("height", 15.0)),
    }


def get_flower_type_names() -> List[str]:
    return list(load_invoice_settings().get("flower_types") or [DEFAULT_FLOWER_TYPE])
