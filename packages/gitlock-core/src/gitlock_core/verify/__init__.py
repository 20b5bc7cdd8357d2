"""Lock verification and proof export."""

from gitlock_core.verify.proof import ProofEntry, ProofExport, export_proofs
from gitlock_core.verify.verifier import VerificationFailure, VerificationReport, verify_chain

__all__ = [
    "ProofEntry",
    "ProofExport",
    "VerificationFailure",
    "VerificationReport",
    "export_proofs",
    "verify_chain",
]
