"""Hyperparameters for categorical CRQA.

One ``CRQAParams`` is fixed per analysis run and shared by every dyad.

``rule`` makes the match rule explicit instead of relying on ``radius``:

- ``"categorical"``: two (embedded) points recur when every coordinate is
  equal. ``radius`` is not used.
- ``"distance"``: two points recur when their euclidean distance is
  <= ``radius``, the continuous-CRQA rule. With integer codes and
  ``radius < 1`` it gives the same matrix as ``"categorical"``.

``lam_direction`` picks which runs feed LAM/TT: columns (``"vertical"``),
rows (``"horizontal"``) or both.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Literal, Mapping

MatchRule = Literal["categorical", "distance"]
LamDirection = Literal["vertical", "horizontal", "both"]

MATCH_RULES = ("categorical", "distance")
LAM_DIRECTIONS = ("vertical", "horizontal", "both")


class ParamsError(ValueError):
    """Invalid CRQA hyperparameters."""


def _as_number(name: str, v: Any) -> float:
    if isinstance(v, bool):
        raise ParamsError(f"{name} must be numeric, got {v!r}")
    try:
        return float(v)
    except (TypeError, ValueError) as exc:
        raise ParamsError(f"{name} must be numeric, got {v!r}") from exc


@dataclass(frozen=True)
class CRQAParams:
    radius: float = 0.5
    delay: int = 0
    embed: int = 1
    mindiagline: int = 2
    minvertline: int = 2
    rule: MatchRule = "categorical"
    lam_direction: LamDirection = "both"

    def __post_init__(self) -> None:
        if isinstance(self.delay, bool) or int(self.delay) != self.delay or self.delay < 0:
            raise ParamsError(f"delay must be a non-negative integer, got {self.delay!r}")
        if isinstance(self.embed, bool) or int(self.embed) != self.embed or self.embed < 1:
            raise ParamsError(f"embed must be a positive integer, got {self.embed!r}")
        if int(self.mindiagline) != self.mindiagline or self.mindiagline < 2:
            raise ParamsError(f"mindiagline must be an integer >= 2, got {self.mindiagline!r}")
        if int(self.minvertline) != self.minvertline or self.minvertline < 2:
            raise ParamsError(f"minvertline must be an integer >= 2, got {self.minvertline!r}")
        if not float(self.radius) >= 0.0:
            raise ParamsError(f"radius must be >= 0, got {self.radius!r}")
        if self.rule not in MATCH_RULES:
            raise ParamsError(f"rule must be one of {MATCH_RULES}, got {self.rule!r}")
        if self.lam_direction not in LAM_DIRECTIONS:
            raise ParamsError(f"lam_direction must be one of {LAM_DIRECTIONS}, got {self.lam_direction!r}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CRQAParams":
        """Build params from a dict (e.g. a JSON config), rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ParamsError(f"Unknown CRQA parameter(s): {', '.join(unknown)}")
        kwargs: dict[str, Any] = {}
        for k, v in data.items():
            if k in ("rule", "lam_direction"):
                kwargs[k] = str(v)
                continue
            number = _as_number(k, v)
            if k == "radius":
                kwargs[k] = number
            elif not math.isfinite(number) or number != int(number):
                raise ParamsError(f"{k} must be an integer, got {v!r}")
            else:
                kwargs[k] = int(number)
        return cls(**kwargs)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)
