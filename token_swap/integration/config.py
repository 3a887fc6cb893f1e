"""
Processor configuration.

The only deployment-time knob is the optional constraint set applied at pool
creation. It comes from, in order:

1. ``TOKEN_SWAP_CONSTRAINTS_FILE``: path to a YAML document,
2. ``TOKEN_SWAP_OWNER_FEE_ADDRESS``: enables the production constraint set
   with that address as the required fee owner,
3. otherwise no constraints.

YAML shape::

    owner_key: "0x..."
    valid_curve_types: [constant_product, constant_price]
    fees:
      trade_fee_numerator: 25
      trade_fee_denominator: 10000
      ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from ..core.calculator import CurveType
from ..core.constraints import SwapConstraints
from ..core.fees import Fees

ENV_CONSTRAINTS_FILE = "TOKEN_SWAP_CONSTRAINTS_FILE"
ENV_OWNER_FEE_ADDRESS = "TOKEN_SWAP_OWNER_FEE_ADDRESS"

PRODUCTION_CURVE_TYPES = (CurveType.CONSTANT_PRICE, CurveType.CONSTANT_PRODUCT)
PRODUCTION_FEES = Fees(
    trade_fee_numerator=25,
    trade_fee_denominator=10_000,
    owner_trade_fee_numerator=5,
    owner_trade_fee_denominator=10_000,
    owner_withdraw_fee_numerator=0,
    owner_withdraw_fee_denominator=0,
    host_fee_numerator=20,
    host_fee_denominator=100,
)


@dataclass(frozen=True)
class ProcessorConfig:
    constraints: Optional[SwapConstraints] = None


def _env_str(name: str) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


def _parse_curve_type(value: Any) -> CurveType:
    if isinstance(value, int) and not isinstance(value, bool):
        return CurveType(value)
    if isinstance(value, str):
        key = value.strip().upper()
        if key in CurveType.__members__:
            return CurveType[key]
    raise ValueError(f"unknown curve type: {value!r}")


def _parse_fees(raw: Any) -> Fees:
    if not isinstance(raw, Mapping):
        raise ValueError("fees must be a mapping")
    known = {f.name for f in fields(Fees)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"unknown fee fields: {sorted(unknown)}")
    return Fees(**{k: raw[k] for k in known if k in raw})


def constraints_from_mapping(doc: Any) -> SwapConstraints:
    if not isinstance(doc, Mapping):
        raise ValueError("constraints document must be a mapping")
    owner_key = doc.get("owner_key")
    if not isinstance(owner_key, str):
        raise ValueError("owner_key must be a string")
    curve_types = doc.get("valid_curve_types")
    if not isinstance(curve_types, list) or not curve_types:
        raise ValueError("valid_curve_types must be a non-empty list")
    return SwapConstraints(
        owner_key=owner_key,
        valid_curve_types=tuple(_parse_curve_type(c) for c in curve_types),
        fees=_parse_fees(doc.get("fees", {})),
    )


def load_constraints(path: Union[str, Path]) -> SwapConstraints:
    with open(path, "r", encoding="utf-8") as f:
        doc = yaml.safe_load(f)
    return constraints_from_mapping(doc)


def production_constraints(owner_key: str) -> SwapConstraints:
    return SwapConstraints(
        owner_key=owner_key,
        valid_curve_types=PRODUCTION_CURVE_TYPES,
        fees=PRODUCTION_FEES,
    )


def config_from_env() -> ProcessorConfig:
    path = _env_str(ENV_CONSTRAINTS_FILE)
    if path is not None:
        return ProcessorConfig(constraints=load_constraints(path))
    owner_key = _env_str(ENV_OWNER_FEE_ADDRESS)
    if owner_key is not None:
        return ProcessorConfig(constraints=production_constraints(owner_key))
    return ProcessorConfig()
