"""
Relaying signed settlements on behalf of solvers.
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import structlog

from ..core.errors import TrampolineError
from ..integration.relay import SolverTrampoline
from .settlement_signer import SignedSettlement

logger = structlog.get_logger("trampoline.agents.relayer")


@dataclass(frozen=True)
class RelayOutcome:
    signed: SignedSettlement
    ok: bool
    result: Any = None
    error: Optional[TrampolineError] = None


def order_for_relay(signed_settlements: List[SignedSettlement]) -> List[SignedSettlement]:
    """
    Order settlements so each solver's messages arrive in sequence order.

    Solvers keep their first-seen order; within a solver, messages are sorted
    by sequence (the relay only accepts the exact next sequence).

    Args:
        signed_settlements: Settlements in arbitrary order

    Returns:
        New list in submission order
    """
    by_solver: Dict[str, List[SignedSettlement]] = OrderedDict()
    for signed in signed_settlements:
        by_solver.setdefault(signed.solver, []).append(signed)

    ordered: List[SignedSettlement] = []
    for solver_settlements in by_solver.values():
        ordered.extend(sorted(solver_settlements, key=lambda s: s.sequence))
    return ordered


def relay_one(trampoline: SolverTrampoline, signed: SignedSettlement) -> Any:
    return trampoline.settle(
        signed.action,
        signed.sequence,
        signed.signature,
        deadline=signed.deadline,
    )


def relay_all(
    trampoline: SolverTrampoline,
    signed_settlements: List[SignedSettlement],
    *,
    stop_on_error: bool = False,
) -> List[RelayOutcome]:
    """
    Submit settlements in relay order and report each outcome.

    Rejections (`TrampolineError`) are recorded in the outcome rather than
    raised; anything else (malformed input) propagates.
    """
    outcomes: List[RelayOutcome] = []
    for signed in order_for_relay(signed_settlements):
        try:
            result = relay_one(trampoline, signed)
        except TrampolineError as exc:
            logger.warning(
                "relayer.settlement_rejected",
                solver=signed.solver,
                sequence=signed.sequence,
                kind=type(exc).__name__,
            )
            outcomes.append(RelayOutcome(signed=signed, ok=False, error=exc))
            if stop_on_error:
                break
            continue
        outcomes.append(RelayOutcome(signed=signed, ok=True, result=result))
    return outcomes
