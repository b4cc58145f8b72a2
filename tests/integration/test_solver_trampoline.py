from __future__ import annotations

import pytest

from trampoline.agents.settlement_signer import sign_settlement
from trampoline.core.errors import Expired, InvalidSequence, TargetFailed, Unauthorized
from trampoline.core.typed_data import SettlementSchema, hash_domain, settlement_digest
from trampoline.core.types import Event, Signature
from trampoline.integration.targets import CallableTarget
from trampoline.state.canonical import UINT256_MAX, ZERO_ADDRESS, canonical_address

MAX_DEADLINE = UINT256_MAX


def _settle(relay, signed):
    return relay.settle(signed.action, signed.sequence, signed.signature, deadline=signed.deadline)


class TestDeployment:
    def test_exposes_collaborators_and_domain(self, relay, target, authority, domain):
        assert relay.settlement_target is target
        assert relay.solver_authenticator is authority
        assert relay.address == domain.verifying_contract
        assert relay.domain_separator() == hash_domain(domain)

    def test_settlement_message_matches_offline_digest(self, relay, domain, solver_key):
        signed = sign_settlement(solver_key, domain, "0x01020304", 42, 1337)
        digest = relay.settlement_message(bytes.fromhex("01020304"), 42, 1337)
        assert digest == settlement_digest(domain, SettlementSchema.WITH_DEADLINE, signed.action, 42, 1337)


class TestSettle:
    def test_executes_settlement_and_increments_sequence(self, relay, target, domain, solver_key, solver_address, clock):
        events = []
        relay.subscribe(events.append)

        sequence = relay.sequences(solver_address)
        assert sequence == 0
        signed = sign_settlement(solver_key, domain, b"\x01", sequence, clock.current_position() + 1)

        assert _settle(relay, signed) == 1
        assert target.calls == [(b"\x01", relay.address)]
        assert relay.sequences(solver_address) == 1
        assert [(e.event, e.solver, e.sequence) for e in events] == [(Event.DISPATCHED, solver_address, 0)]

    def test_empty_action_with_deadline_at_current_position(self, relay, domain, solver_key, solver_address, clock):
        signed = sign_settlement(solver_key, domain, "0x", 0, clock.current_position())
        _settle(relay, signed)
        assert relay.sequences(solver_address) == 1

        with pytest.raises(InvalidSequence) as exc_info:
            _settle(relay, signed)
        assert exc_info.value.expected == 1
        assert exc_info.value.got == 0
        assert relay.sequences(solver_address) == 1

    def test_expired_settlement_is_rejected_and_sequence_unchanged(
        self, relay, target, domain, solver_key, solver_address, clock
    ):
        deadline = clock.current_position()
        signed = sign_settlement(solver_key, domain, "0x", 0, deadline)
        clock.advance(1)

        with pytest.raises(Expired) as exc_info:
            _settle(relay, signed)
        assert exc_info.value.deadline == deadline
        assert exc_info.value.position == deadline + 1
        assert relay.sequences(solver_address) == 0
        assert target.calls == []

    def test_target_failure_propagates_and_rolls_back(self, relay, domain, solver_key, solver_address):
        events = []
        relay.subscribe(events.append)
        signed = sign_settlement(solver_key, domain, b"revert", 0, MAX_DEADLINE)

        with pytest.raises(TargetFailed, match="test settlement reverted") as exc_info:
            _settle(relay, signed)
        assert isinstance(exc_info.value.reason, RuntimeError)
        assert exc_info.value.__cause__ is exc_info.value.reason
        assert relay.sequences(solver_address) == 0
        assert events == []

        # The same signature is still usable once the target accepts it.
        ok = sign_settlement(solver_key, domain, b"ok", 0, MAX_DEADLINE)
        _settle(relay, ok)
        assert relay.sequences(solver_address) == 1

    def test_invalid_signature_is_unauthorized_zero_address(self, relay):
        with pytest.raises(Unauthorized) as exc_info:
            relay.settle(b"", 0, Signature(v=42, r=0, s=0), deadline=0)
        assert exc_info.value.solver == canonical_address(ZERO_ADDRESS)

    def test_unauthorized_solver_is_rejected(self, relay, domain, not_solver_key, not_solver_address):
        signed = sign_settlement(not_solver_key, domain, "0x", 0, MAX_DEADLINE)
        with pytest.raises(Unauthorized) as exc_info:
            _settle(relay, signed)
        assert exc_info.value.solver == not_solver_address
        assert relay.sequences(not_solver_address) == 0

    def test_wrong_sequence_is_rejected(self, relay, domain, solver_key, solver_address):
        signed = sign_settlement(solver_key, domain, "0x", 1, MAX_DEADLINE)
        with pytest.raises(InvalidSequence):
            _settle(relay, signed)
        assert relay.sequences(solver_address) == 0

    @pytest.mark.parametrize("field", ["action", "sequence", "deadline"])
    def test_tampered_field_fails_authorization(self, relay, domain, solver_key, solver_address, field):
        signed = sign_settlement(solver_key, domain, b"\x01", 0, 500)
        action, sequence, deadline = signed.action, signed.sequence, signed.deadline
        if field == "action":
            action = b"\x02"
        elif field == "sequence":
            sequence = 1
        else:
            deadline = 501

        with pytest.raises(Unauthorized) as exc_info:
            relay.settle(action, sequence, signed.signature, deadline=deadline)
        assert exc_info.value.solver != solver_address
        assert relay.sequences(solver_address) == 0

    def test_signature_for_other_relay_is_rejected(self, make_relay, domain, solver_key, solver_address):
        other = make_relay(address="0x" + "6e" * 20)
        signed = sign_settlement(solver_key, domain, "0x", 0, MAX_DEADLINE)
        with pytest.raises(Unauthorized) as exc_info:
            _settle(other, signed)
        assert exc_info.value.solver != solver_address

    def test_signature_for_other_chain_is_rejected(self, make_relay, domain, solver_key, solver_address):
        other = make_relay(chain_id=domain.chain_id + 1)
        signed = sign_settlement(solver_key, domain, "0x", 0, MAX_DEADLINE)
        with pytest.raises(Unauthorized):
            _settle(other, signed)

    def test_revocation_applies_to_next_submission(self, relay, authority, domain, solver_key, solver_address):
        first = sign_settlement(solver_key, domain, "0x", 0, MAX_DEADLINE)
        second = sign_settlement(solver_key, domain, "0x", 1, MAX_DEADLINE)
        _settle(relay, first)

        authority.remove_solver(solver_address)
        with pytest.raises(Unauthorized):
            _settle(relay, second)
        assert relay.sequences(solver_address) == 1

        authority.add_solver(solver_address)
        _settle(relay, second)
        assert relay.sequences(solver_address) == 2

    def test_accepts_packed_signature_bytes(self, relay, domain, solver_key, solver_address):
        signed = sign_settlement(solver_key, domain, "0xabcd", 0, MAX_DEADLINE)
        relay.settle("0xabcd", 0, signed.signature.to_hex(), deadline=MAX_DEADLINE)
        assert relay.sequences(solver_address) == 1

    def test_schema_mismatch_is_a_value_error(self, relay, domain, solver_key):
        signed = sign_settlement(solver_key, domain, "0x", 0, MAX_DEADLINE)
        with pytest.raises(ValueError):
            relay.settle(signed.action, signed.sequence, signed.signature)


class TestNoDeadlineSchema:
    def test_settles_without_deadline(self, make_relay, solver_key, solver_address):
        relay = make_relay(schema=SettlementSchema.NO_DEADLINE)
        signed = sign_settlement(solver_key, relay.domain, "0x", 0, schema=SettlementSchema.NO_DEADLINE)
        relay.settle(signed.action, signed.sequence, signed.signature)
        assert relay.sequences(solver_address) == 1

    def test_rejects_deadline_argument(self, make_relay, solver_key):
        relay = make_relay(schema=SettlementSchema.NO_DEADLINE)
        signed = sign_settlement(solver_key, relay.domain, "0x", 0, schema=SettlementSchema.NO_DEADLINE)
        with pytest.raises(ValueError):
            relay.settle(signed.action, signed.sequence, signed.signature, deadline=1)


class TestUnsetTarget:
    def test_settle_consumes_sequence_without_forwarding(self, make_relay, solver_key, solver_address):
        relay = make_relay(target=None)
        signed = sign_settlement(solver_key, relay.domain, "0x", 0, MAX_DEADLINE)
        assert _settle(relay, signed) is None
        assert relay.sequences(solver_address) == 1
        assert relay.settlement_target is None


class TestCancelCurrentSequence:
    def test_cancel_burns_outstanding_message(self, relay, domain, solver_key, solver_address, not_solver_address):
        events = []
        relay.subscribe(events.append)
        signed = sign_settlement(solver_key, domain, "0x", 0, MAX_DEADLINE)

        assert relay.cancel_current_sequence(solver_address) == 0
        assert relay.sequences(solver_address) == 1
        assert relay.sequences(not_solver_address) == 0
        assert [(e.event, e.sequence) for e in events] == [(Event.SEQUENCE_CANCELLED, 0)]

        with pytest.raises(InvalidSequence):
            _settle(relay, signed)

    def test_cancel_needs_no_authorization(self, relay, not_solver_address, solver_address):
        relay.cancel_current_sequence(not_solver_address)
        relay.cancel_current_sequence(not_solver_address)
        assert relay.sequences(not_solver_address) == 2
        assert relay.sequences(solver_address) == 0

    def test_settle_after_cancel_uses_next_sequence(self, relay, domain, solver_key, solver_address):
        relay.cancel_current_sequence(solver_address)
        signed = sign_settlement(solver_key, domain, "0x", 1, MAX_DEADLINE)
        _settle(relay, signed)
        assert relay.sequences(solver_address) == 2


class TestSubscribers:
    def test_unsubscribe_stops_delivery(self, relay, solver_address):
        events = []
        unsubscribe = relay.subscribe(events.append)
        relay.cancel_current_sequence(solver_address)
        unsubscribe()
        relay.cancel_current_sequence(solver_address)
        assert len(events) == 1


def test_callable_target_receives_action_and_relay_address(make_relay, solver_key):
    seen = []
    relay = make_relay(target=CallableTarget(lambda action, sender: seen.append((action, sender)) or "done"))
    signed = sign_settlement(solver_key, relay.domain, "0x0102", 0, MAX_DEADLINE)
    assert _settle(relay, signed) == "done"
    assert seen == [(b"\x01\x02", relay.address)]
