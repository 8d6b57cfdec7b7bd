"""
MPC-in-the-Head Engine
======================

Three-party simulation shared by the prover and the verifier.

Every private wire is additively shared between parties 0, 1 and 2. Linear
gates are evaluated locally. A multiplication of two private wires is the
only interactive step: party ``i`` computes

    z_i = x_i*y_i + x_{i+1}*y_i + x_i*y_{i+1} + R_i - R_{i+1}

where ``R`` comes from each party's random tape. The shares of all ``z_i``
sum to ``x*y``, and the list of ``z_i`` a party produced is its *view*.

The prover runs all three parties and commits to each view. The verifier
is given two adjacent parties, re-runs the first in full and replays the
second from its supplied view, so it sees nothing about the third party's
shares and therefore nothing about the witness.

Version: 0.1.0
"""

import hashlib
from collections.abc import Mapping, Sequence

from shared.zk.circuit import Circuit, GateType, combine
from shared.zk.field import ELEMENT_SIZE, FIELD_MODULUS, encode_elements


P = FIELD_MODULUS

PARTIES = 3
SEED_SIZE = 16
DIGEST_SIZE = 32

_TAPE_DOMAIN = b"zkcredit/tape/v1"
_COMMIT_DOMAIN = b"zkcredit/commit/v1"
_CHALLENGE_DOMAIN = b"zkcredit/challenge/v1"
_EXPAND_DOMAIN = b"zkcredit/expand/v1"

# Bytes drawn per tape element; the surplus over ELEMENT_SIZE keeps the
# reduction bias below 2^-64
_TAPE_CHUNK = ELEMENT_SIZE + 8


def expand_tape(seed: bytes, length: int) -> list[int]:
    """Deterministic pseudo-random field elements from a party seed."""
    raw = hashlib.shake_256(_TAPE_DOMAIN + seed).digest(length * _TAPE_CHUNK)
    return [
        int.from_bytes(raw[offset : offset + _TAPE_CHUNK], "big") % P
        for offset in range(0, len(raw), _TAPE_CHUNK)
    ]


def tape_length(circuit: Circuit) -> int:
    """Input shares first, then one element per interactive multiplication."""
    return len(circuit.private_wires) + len(circuit.mul_wires)


def commit_view(seed: bytes, explicit_inputs: Sequence[int] | None, view: Sequence[int]) -> bytes:
    """Hash commitment to one party's seed, explicit input shares and view."""
    h = hashlib.sha256(_COMMIT_DOMAIN)
    h.update(seed)
    if explicit_inputs is not None:
        h.update(encode_elements(explicit_inputs))
    h.update(encode_elements(view))
    return h.digest()


def challenge_digest(
    circuit: Circuit,
    public_bytes: bytes,
    outputs: Sequence[Sequence[Sequence[int]]],
    commitments: Sequence[Sequence[bytes]],
    context: bytes = b"",
) -> bytes:
    """
    Fiat-Shamir digest over the statement and every repetition's transcript.

    ``outputs[r][i]`` are party ``i``'s output shares in repetition ``r``
    and ``commitments[r][i]`` its view commitment. ``context`` binds the
    argument to caller data such as a nonce.
    """
    h = hashlib.sha256(_CHALLENGE_DOMAIN)
    h.update(circuit.digest)
    h.update(len(public_bytes).to_bytes(4, "big"))
    h.update(public_bytes)
    h.update(len(context).to_bytes(4, "big"))
    h.update(context)
    h.update(len(outputs).to_bytes(2, "big"))
    for round_outputs, round_commitments in zip(outputs, commitments, strict=True):
        for party in range(PARTIES):
            h.update(encode_elements(round_outputs[party]))
            h.update(round_commitments[party])
    return h.digest()


def derive_challenges(digest: bytes, repetitions: int) -> list[int]:
    """Expand a digest into one opened-party index in {0, 1, 2} per repetition."""
    challenges: list[int] = []
    counter = 0
    while len(challenges) < repetitions:
        block = hashlib.shake_256(
            _EXPAND_DOMAIN + digest + counter.to_bytes(4, "big")
        ).digest(repetitions + 16)
        for byte in block:
            # 255 would bias the distribution towards 0
            if byte == 255:
                continue
            challenges.append(byte % PARTIES)
            if len(challenges) == repetitions:
                break
        counter += 1
    return challenges


def simulate(
    circuit: Circuit,
    public_values: Mapping[int, int],
    parties: Sequence[int],
    input_shares: Mapping[int, Sequence[int]],
    tapes: Mapping[int, Sequence[int]],
    given_views: Mapping[int, Sequence[int]] | None = None,
) -> tuple[dict[int, list[int]], dict[int, list[int]]]:
    """
    Run the parties in ``parties`` through the circuit.

    Args:
        circuit: Circuit to evaluate.
        public_values: Clear values of every public wire.
        parties: Party indices to simulate.
        input_shares: Per party, its share of each private wire in
            ``circuit.private_wires`` order.
        tapes: Per party, its random tape. Party ``i`` also needs the tape
            of party ``i + 1`` unless its view is given.
        given_views: Parties whose multiplication outputs are replayed
            instead of computed.

    Returns:
        ``(views, outputs)``: per party, its multiplication outputs and its
        shares of ``circuit.private_assertions``.
    """
    given_views = given_views or {}
    gates = circuit.gates
    n_private = len(circuit.private_wires)
    private_slot = {wire: slot for slot, wire in enumerate(circuit.private_wires)}
    mul_slot = {wire: slot for slot, wire in enumerate(circuit.mul_wires)}

    wires = {party: [0] * len(gates) for party in parties}
    views = {party: [0] * len(circuit.mul_wires) for party in parties}

    for w, gate in enumerate(gates):
        kind = gate.kind

        if gate.public:
            value = public_values[w]
            for party in parties:
                wires[party][w] = value if party == 0 else 0
            continue

        slot = private_slot.get(w)
        if slot is not None:
            for party in parties:
                wires[party][w] = input_shares[party][slot]
            continue

        if kind is GateType.NOT:
            a = gate.operands[0]
            for party in parties:
                wires[party][w] = ((1 if party == 0 else 0) - wires[party][a]) % P
            continue

        a, b = gate.operands

        if kind is GateType.ADD:
            for party in parties:
                wires[party][w] = (wires[party][a] + wires[party][b]) % P
            continue

        if kind is GateType.SUB:
            for party in parties:
                wires[party][w] = (wires[party][a] - wires[party][b]) % P
            continue

        k = mul_slot.get(w)
        for party in parties:
            x = wires[party][a]
            y = wires[party][b]
            if k is None:
                # One operand is public: scale locally
                if gates[a].public:
                    product = public_values[a] * y % P
                else:
                    product = x * public_values[b] % P
            elif party in given_views:
                product = given_views[party][k]
                views[party][k] = product
            else:
                nxt = (party + 1) % PARTIES
                x_next = wires[nxt][a]
                y_next = wires[nxt][b]
                product = (
                    x * y
                    + x_next * y
                    + x * y_next
                    + tapes[party][n_private + k]
                    - tapes[nxt][n_private + k]
                ) % P
                views[party][k] = product
            wires[party][w] = combine(kind, x, y, product, 1 if party == 0 else 0)

    outputs = {
        party: [wires[party][assertion.wire] for assertion in circuit.private_assertions]
        for party in parties
    }
    return views, outputs
