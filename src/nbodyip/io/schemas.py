"""
Pydantic models for persisted records and basis configuration payloads.

All validation of external data lives here. Model objects convert
themselves to and from these records; they never validate raw dicts on
their own.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


# ------------------------------------------------------------------ #
#  Persisted records
# ------------------------------------------------------------------ #


class DictionaryRecord(BaseModel):
    """Record for a Dictionary (transform, cutoff, body order)."""

    id: Literal["Dictionary"] = "Dictionary"
    transform: str = Field(..., min_length=1, description="Transform descriptor")
    cutoff: List[Union[str, float]] = Field(
        ..., min_length=2, description="Cutoff descriptor (name, *params)"
    )
    body_order: int = Field(..., ge=2, description="Number of atoms per cluster")

    @field_validator("cutoff")
    @classmethod
    def cutoff_starts_with_name(cls, v: List[Union[str, float]]) -> List[Union[str, float]]:
        if not isinstance(v[0], str):
            raise ValueError("cutoff descriptor must start with the shape name")
        if any(isinstance(p, str) for p in v[1:]):
            raise ValueError("cutoff parameters must be numbers")
        return v


class NBodyRecord(BaseModel):
    """Record for an NBody term."""

    id: Literal["NBody"] = "NBody"
    body_order: int = Field(..., ge=2)
    tuples: List[List[int]]
    coefficients: List[float]
    dictionary: DictionaryRecord

    @field_validator("tuples")
    @classmethod
    def exponents_non_negative(cls, v: List[List[int]]) -> List[List[int]]:
        for t in v:
            if any(a < 0 for a in t):
                raise ValueError(f"negative exponent in tuple {t}")
        return v

    @model_validator(mode="after")
    def check_consistency(self) -> "NBodyRecord":
        if len(self.tuples) != len(self.coefficients):
            raise ValueError(
                f"{len(self.tuples)} tuples but {len(self.coefficients)} coefficients"
            )
        if self.body_order != self.dictionary.body_order:
            raise ValueError("body_order does not match the dictionary")
        return self


class OneBodyRecord(BaseModel):
    """Record for a constant per-atom term."""

    id: Literal["OneBody"] = "OneBody"
    c: float


class NBodyIPRecord(BaseModel):
    """Record for a full potential; components are decoded by tag."""

    id: Literal["NBodyIP"] = "NBodyIP"
    components: List[Dict[str, Any]]

    @field_validator("components")
    @classmethod
    def components_are_tagged(cls, v: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        for record in v:
            if "id" not in record:
                raise ValueError("every component record needs an 'id' tag")
        return v


# ------------------------------------------------------------------ #
#  Basis configuration
# ------------------------------------------------------------------ #


class BodyOrderSpec(BaseModel):
    """One entry of the ``bodyorders`` list of a basis configuration."""

    N: int = Field(..., ge=1, description="Body order")
    energy: Optional[float] = Field(None, description="Constant per-atom energy (N = 1)")
    transform: Optional[str] = Field(None, description="Distance transform")
    cutoff: Optional[Union[str, List[Union[str, float]]]] = Field(
        None, description="Cutoff descriptor"
    )
    degree: Optional[int] = Field(None, ge=1, description="Total degree bound")

    @model_validator(mode="after")
    def check_fields_for_order(self) -> "BodyOrderSpec":
        if self.N == 1:
            if self.energy is None:
                raise ValueError("N = 1 entries need 'energy'")
        else:
            missing = [
                name for name in ("transform", "cutoff", "degree")
                if getattr(self, name) is None
            ]
            if missing:
                raise ValueError(f"N = {self.N} entry is missing {', '.join(missing)}")
        return self


class BasisConfig(BaseModel):
    """Top-level basis configuration."""

    bodyorders: List[BodyOrderSpec] = Field(..., min_length=1)
