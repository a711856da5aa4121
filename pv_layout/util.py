# This file is part of the solar wizard PV suitability model, copyright © Centre for Sustainable Energy, 2020-2023
# Licensed under the Reciprocal Public License v1.5. See LICENSE for licensing details.
import zlib
from typing import Optional


def validate_int(val: int, name: str, minval: int = None, maxval: int = None) -> int:
    if val is None:
        raise ValueError(f"parameter {name} was None")
    val = int(val)
    if minval is not None and val < minval:
        raise ValueError(f"parameter {name} must be greater or equal to {minval}, was {val}")
    if maxval is not None and val > maxval:
        raise ValueError(f"parameter {name} must be less than or equal to {maxval}, was {val}")
    return val


def validate_float(val: float, name: str, minval: float = None, maxval: float = None,
                   exclusive_min: bool = False) -> float:
    if val is None:
        raise ValueError(f"parameter {name} was None")
    val = float(val)
    if val != val:
        raise ValueError(f"parameter {name} was NaN")
    if minval is not None:
        if exclusive_min and val <= minval:
            raise ValueError(f"parameter {name} must be greater than {minval}, was {val}")
        if val < minval:
            raise ValueError(f"parameter {name} must be greater or equal to {minval}, was {val}")
    if maxval is not None and val > maxval:
        raise ValueError(f"parameter {name} must be less than or equal to {maxval}, was {val}")
    return val


def stable_seed(*parts) -> int:
    """
    Seed for a numpy Generator derived from `parts`. Unlike hash(), this does not
    change between interpreter runs.
    """
    key = "|".join(str(p) for p in parts)
    return zlib.crc32(key.encode("utf-8"))


def safe_div(num: float, denom: float, default: Optional[float] = 0.0) -> Optional[float]:
    return num / denom if denom else default
