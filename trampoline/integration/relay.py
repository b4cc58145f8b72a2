"""
Solver trampoline: signature-gated, one-shot dispatch to a settlement target.

This is the imperative shell around the pure core:
- recovers the solver from an EIP-712 signature (`core.signatures`),
- runs the guards (`core.guards`) against live oracle / sequence / clock state,
- advances the solver's sequence *before* forwarding the action, and rolls the
  advance back if the target raises.

Every state-mutating call runs under one re-entrant lock. A target may call
back into the same relay from inside `execute()`; it then sees the already
advanced sequence, so the message being settled cannot be replayed.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, List, Mapping, NoReturn, Optional

import structlog

from ..core.errors import Expired, InvalidSequence, TargetFailed, TrampolineError, Unauthorized
from ..core.guards import guard_authorized, guard_not_expired, guard_sequence
from ..core.signatures import SignatureLike, as_signature, recover_signer
from ..core.typed_data import (
    DomainDescriptor,
    SettlementSchema,
    hash_domain,
    hash_struct,
    typed_data_digest,
)
from ..core.types import Event, RelayEvent
from ..state.canonical import bytes32_hex, canonical_address, require_bytes, require_uint256
from ..state.sequences import SequenceTable
from .authority import AuthorityOracle
from .clock import ManualClock, PositionSource, WallClock
from .config import TrampolineConfig
from .targets import SettlementTarget

logger = structlog.get_logger("trampoline.integration.relay")

Subscriber = Callable[[RelayEvent], None]


class SolverTrampoline:
    """
    Parameters
    ----------
    domain:
        Chain id + this relay's address. Fixed for the relay's lifetime.
    authority:
        Oracle consulted on every submission.
    target:
        Receives forwarded actions. ``None`` is the unset-target configuration:
        settlements are still verified and consume a sequence, but forwarding
        is a no-op.
    schema:
        Whether signed messages carry a deadline.
    clock:
        Position source for deadline checks. Defaults to unix seconds.
    """

    def __init__(
        self,
        *,
        domain: DomainDescriptor,
        authority: AuthorityOracle,
        target: Optional[SettlementTarget] = None,
        schema: SettlementSchema = SettlementSchema.WITH_DEADLINE,
        clock: Optional[PositionSource] = None,
        sequences: Optional[SequenceTable] = None,
    ) -> None:
        self._domain = domain
        self._domain_separator = hash_domain(domain)
        self._authority = authority
        self._target = target
        self._schema = schema
        self._clock: PositionSource = clock if clock is not None else WallClock()
        self._sequences = sequences if sequences is not None else SequenceTable()

        self._lock = threading.RLock()
        self._subscribers: List[Subscriber] = []
        # Events of the outermost call in flight; published only if it commits.
        self._pending: List[RelayEvent] = []
        self._depth = 0

        logger.info(
            "trampoline.created",
            chain_id=domain.chain_id,
            address=domain.verifying_contract,
            schema=schema.name,
            has_target=target is not None,
        )

    @classmethod
    def from_config(
        cls,
        config: TrampolineConfig,
        *,
        authority: AuthorityOracle,
        target: Optional[SettlementTarget] = None,
        clock: Optional[PositionSource] = None,
    ) -> "SolverTrampoline":
        if clock is None:
            clock = ManualClock() if config.position_source == "manual" else WallClock()
        return cls(
            domain=config.domain,
            authority=authority,
            target=target,
            schema=config.schema,
            clock=clock,
        )

    # -- Read-only views ------------------------------------------------------

    @property
    def address(self) -> str:
        return self._domain.verifying_contract

    @property
    def domain(self) -> DomainDescriptor:
        return self._domain

    @property
    def schema(self) -> SettlementSchema:
        return self._schema

    @property
    def settlement_target(self) -> Optional[SettlementTarget]:
        return self._target

    @property
    def solver_authenticator(self) -> AuthorityOracle:
        return self._authority

    def domain_separator(self) -> bytes:
        return self._domain_separator

    def settlement_message(self, action: bytes, sequence: int, deadline: Optional[int] = None) -> bytes:
        """The exact digest a solver must sign for these fields."""
        return typed_data_digest(self._domain_separator, hash_struct(self._schema, action, sequence, deadline))

    def sequences(self, address: str) -> int:
        with self._lock:
            return self._sequences.get(address)

    current_sequence = sequences

    def sequence_table(self) -> dict:
        with self._lock:
            return dict(self._sequences.get_all())

    # -- Notifications --------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register for committed events; returns an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    def _publish(self) -> None:
        events, self._pending = self._pending, []
        subscribers = list(self._subscribers)
        for ev in events:
            if ev.event is Event.DISPATCHED:
                logger.info("trampoline.dispatched", solver=ev.solver, sequence=ev.sequence)
            else:
                logger.info("trampoline.sequence_cancelled", solver=ev.solver, sequence=ev.sequence)
            # State is already committed: every subscriber sees every event.
            for callback in subscribers:
                try:
                    callback(ev)
                except Exception:
                    logger.exception(
                        "trampoline.subscriber_failed",
                        kind=ev.event.value,
                        solver=ev.solver,
                        sequence=ev.sequence,
                    )

    # -- State-mutating operations -------------------------------------------

    def settle(
        self,
        action: bytes,
        sequence: int,
        signature: SignatureLike,
        *,
        deadline: Optional[int] = None,
    ) -> Any:
        """
        Verify a signed settlement and forward `action` to the target.

        Returns whatever the target returned.

        Raises:
            Unauthorized: signer is the zero address or not an authorized solver.
            InvalidSequence: `sequence` is not the solver's next expected value.
            Expired: current position is past `deadline`.
            TargetFailed: the target raised; no state change survives.
            ValueError/TypeError: malformed input or schema mismatch.
        """
        action_b = require_bytes(action, name="action")
        require_uint256(sequence, name="sequence")
        sig = as_signature(signature)
        digest = self.settlement_message(action_b, sequence, deadline)

        with self._lock:
            solver = recover_signer(digest, sig)

            if not guard_authorized(solver, self._authority.is_authorized):
                self._reject(Unauthorized(solver), sequence=sequence)

            expected = self._sequences.get(solver)
            if not guard_sequence(expected, sequence):
                self._reject(InvalidSequence(solver, expected, sequence), sequence=sequence)

            if deadline is not None:
                position = self._clock.current_position()
                if not guard_not_expired(deadline, position):
                    self._reject(Expired(deadline, position), solver=solver, sequence=sequence)

            mark = len(self._pending)
            self._depth += 1
            try:
                with self._sequences.transaction():
                    consumed = self._sequences.advance(solver)
                    result = self._forward(action_b)
                    self._pending.append(RelayEvent(Event.DISPATCHED, solver, consumed))
            except TargetFailed as exc:
                del self._pending[mark:]
                logger.info(
                    "trampoline.rejected",
                    kind="TargetFailed",
                    solver=solver,
                    sequence=sequence,
                    reason=str(exc.reason),
                )
                raise
            except BaseException:
                del self._pending[mark:]
                raise
            finally:
                self._depth -= 1

            if self._depth == 0:
                self._publish()
            return result

    submit = settle

    def cancel_current_sequence(self, caller: str) -> int:
        """
        Burn `caller`'s current sequence without executing anything.

        Self-service: only the caller's own counter moves. Returns the
        sequence that was cancelled.
        """
        solver = canonical_address(caller, name="caller")
        with self._lock:
            cancelled = self._sequences.advance(solver)
            self._pending.append(RelayEvent(Event.SEQUENCE_CANCELLED, solver, cancelled))
            if self._depth == 0:
                self._publish()
            return cancelled

    def restore_sequences(self, next_sequences: Mapping[str, int]) -> None:
        """Raise counters to persisted values; refuses to lower any of them."""
        with self._lock:
            if self._depth:
                raise RuntimeError("cannot restore sequences during a settlement")
            with self._sequences.transaction():
                for solver, next_sequence in next_sequences.items():
                    self._sequences.seed(solver, next_sequence)
        logger.info("trampoline.sequences_restored", solvers=len(next_sequences))

    def _forward(self, action: bytes) -> Any:
        if self._target is None:
            return None
        try:
            return self._target.execute(action, sender=self.address)
        except Exception as exc:
            raise TargetFailed(exc) from exc

    def _reject(self, err: TrampolineError, **fields: Any) -> NoReturn:
        if isinstance(err, (Unauthorized, InvalidSequence)):
            fields.setdefault("solver", err.solver)
        logger.info("trampoline.rejected", kind=type(err).__name__, **fields)
        raise err

    def __repr__(self) -> str:
        return (
            f"SolverTrampoline(chain_id={self._domain.chain_id}, address={self.address}, "
            f"domain_separator={bytes32_hex(self._domain_separator)})"
        )
