"""Protocol configuration: field pair, commitment scheme, transcript, quotient size."""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Union

from primitives.field import FF, FF3
from primitives.transcript import Transcript
from protocol.errors import UnsupportedConfigurationError
from protocol.pcs import FriPcs, FriPcsConfig


@dataclass
class StarkConfig:
    """Everything prover and verifier must agree on besides the computation.

    Attributes:
        pcs: Commitment scheme shared by every commit and opening
        log_quotient_degree: log2 of the number of quotient chunks; the
            quotient domain is this many times larger than the trace
        num_workers: Threads used for the prover's quotient loop
        check_constraints: Run the row-wise constraint checker before proving
        transcript_arity: Sponge arity of the Fiat-Shamir transcript
    """
    pcs: FriPcs = field(default_factory=lambda: FriPcs(FriPcsConfig()))
    log_quotient_degree: int = 2
    num_workers: int = 1
    check_constraints: bool = False
    transcript_arity: int = 4

    base_field = FF
    ext_field = FF3

    def __post_init__(self):
        if self.log_quotient_degree < 1:
            raise UnsupportedConfigurationError(
                f"log_quotient_degree must be at least 1, got {self.log_quotient_degree}"
            )
        if self.num_workers < 1:
            raise ValueError(f"num_workers must be positive, got {self.num_workers}")

    @property
    def quotient_degree(self) -> int:
        return 1 << self.log_quotient_degree

    def challenger(self) -> Transcript:
        """A fresh transcript for one prove or verify call."""
        return Transcript(arity=self.transcript_arity)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StarkConfig":
        """Build from a plain dict, e.g. parsed JSON.

        The "pcs" key, when present, holds FriPcsConfig fields.
        """
        data = dict(data)
        pcs_data = data.pop("pcs", {})
        known = {f.name for f in fields(cls)} - {"pcs"}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown StarkConfig fields: {sorted(unknown)}")
        return cls(pcs=FriPcs(FriPcsConfig.from_dict(pcs_data)), **data)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "StarkConfig":
        with open(path) as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pcs": self.pcs.config.to_dict(),
            "log_quotient_degree": self.log_quotient_degree,
            "num_workers": self.num_workers,
            "check_constraints": self.check_constraints,
            "transcript_arity": self.transcript_arity,
        }
