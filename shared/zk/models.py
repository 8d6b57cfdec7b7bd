"""
ZK Argument Data Models
=======================

Witness, public inputs and the serialized argument.

Argument layout (big-endian)::

    magic "ZKCA" | version u8 | circuit digest (32) | repetitions u16 |
    challenge digest (32) | round * repetitions

    round := seed_e (16) | seed_e+1 (16) | commitment_e+2 (32) |
             party-2 input shares (n_private * 16) | view_e+1 (n_mul * 16)

The party-2 block is zero-filled when party 2 is not opened, so every
argument for a given circuit and repetition count has the same length.

Version: 0.1.0
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from shared.exceptions import InvalidInputError, VerificationError
from shared.zk.circuit import Circuit
from shared.zk.field import ELEMENT_SIZE, FieldElement, decode_elements, encode_elements
from shared.zk.mpc import DIGEST_SIZE, PARTIES, SEED_SIZE, derive_challenges


ARGUMENT_MAGIC = b"ZKCA"
ARGUMENT_VERSION = 1
HEADER_SIZE = len(ARGUMENT_MAGIC) + 1 + DIGEST_SIZE + 2 + DIGEST_SIZE


def _to_field_map(values: Mapping[str, FieldElement | int]) -> dict[str, FieldElement]:
    result = {}
    for name, value in values.items():
        if not isinstance(name, str) or not name:
            raise InvalidInputError("Input names must be non-empty strings")
        result[name] = value if isinstance(value, FieldElement) else FieldElement(value)
    return result


class Witness(Mapping[str, FieldElement]):
    """
    Private wire assignment.

    Exists only while proving. Its repr never shows values.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, FieldElement | int]) -> None:
        self._values = _to_field_map(values)

    def __getitem__(self, name: str) -> FieldElement:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Witness(names={sorted(self._values)})"


class PublicInputs(Mapping[str, FieldElement]):
    """
    Public wire assignment with a canonical byte encoding.

    Encoding: ``count u16`` then, sorted by name,
    ``len u8 | name utf-8 | value (16)``.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, FieldElement | int]) -> None:
        self._values = _to_field_map(values)

    def __getitem__(self, name: str) -> FieldElement:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PublicInputs):
            return self._values == other._values
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        items = ", ".join(f"{k}={int(v)}" for k, v in sorted(self._values.items()))
        return f"PublicInputs({items})"

    def to_bytes(self) -> bytes:
        parts = [len(self._values).to_bytes(2, "big")]
        for name in sorted(self._values):
            encoded = name.encode("utf-8")
            if len(encoded) > 255:
                raise InvalidInputError(f"Input name too long: {name[:32]}...")
            parts.append(len(encoded).to_bytes(1, "big"))
            parts.append(encoded)
            parts.append(self._values[name].to_bytes())
        return b"".join(parts)

    @classmethod
    def from_bytes(cls, data: bytes) -> "PublicInputs":
        """
        Decode the canonical encoding.

        Raises:
            InvalidInputError: On truncated, trailing, duplicate or unsorted entries.
        """
        if len(data) < 2:
            raise InvalidInputError("Public inputs are truncated")
        count = int.from_bytes(data[:2], "big")
        offset = 2
        values: dict[str, FieldElement] = {}
        previous: str | None = None
        for _ in range(count):
            if offset >= len(data):
                raise InvalidInputError("Public inputs are truncated")
            name_len = data[offset]
            offset += 1
            end = offset + name_len
            if end + ELEMENT_SIZE > len(data):
                raise InvalidInputError("Public inputs are truncated")
            try:
                name = data[offset:end].decode("utf-8")
            except UnicodeDecodeError as e:
                raise InvalidInputError("Public input name is not valid UTF-8") from e
            if previous is not None and name <= previous:
                raise InvalidInputError("Public input names must be unique and sorted")
            values[name] = FieldElement.from_bytes(data[end : end + ELEMENT_SIZE])
            previous = name
            offset = end + ELEMENT_SIZE
        if offset != len(data):
            raise InvalidInputError("Trailing bytes after public inputs")
        return cls(values)


@dataclass(frozen=True)
class ArgumentRound:
    """One repetition: what the verifier needs to check parties e and e+1."""

    challenge: int
    seeds: tuple[bytes, bytes]
    hidden_commitment: bytes
    # Party 2 input shares; all zero unless party 2 is opened
    explicit_inputs: tuple[int, ...]
    view: tuple[int, ...]

    @property
    def opened(self) -> tuple[int, int]:
        return self.challenge, (self.challenge + 1) % PARTIES

    @property
    def opens_party_two(self) -> bool:
        return 2 in self.opened


@dataclass(frozen=True)
class Argument:
    """A non-interactive argument of knowledge for one circuit and statement."""

    circuit_digest: bytes
    repetitions: int
    challenge: bytes
    rounds: tuple[ArgumentRound, ...]

    def to_bytes(self) -> bytes:
        parts = [
            ARGUMENT_MAGIC,
            ARGUMENT_VERSION.to_bytes(1, "big"),
            self.circuit_digest,
            self.repetitions.to_bytes(2, "big"),
            self.challenge,
        ]
        for rnd in self.rounds:
            parts.append(rnd.seeds[0])
            parts.append(rnd.seeds[1])
            parts.append(rnd.hidden_commitment)
            parts.append(encode_elements(rnd.explicit_inputs))
            parts.append(encode_elements(rnd.view))
        return b"".join(parts)

    @classmethod
    def from_bytes(cls, data: bytes, circuit: Circuit) -> "Argument":
        """
        Parse an argument against the layout of ``circuit``.

        Raises:
            VerificationError: If the blob is malformed or belongs to another circuit.
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise VerificationError("Argument must be bytes")
        data = bytes(data)
        if len(data) < HEADER_SIZE:
            raise VerificationError("Argument is truncated")
        if data[:4] != ARGUMENT_MAGIC:
            raise VerificationError("Not a zkcredit argument")
        if data[4] != ARGUMENT_VERSION:
            raise VerificationError(f"Unsupported argument version {data[4]}")

        offset = 5
        circuit_digest = data[offset : offset + DIGEST_SIZE]
        offset += DIGEST_SIZE
        if circuit_digest != circuit.digest:
            raise VerificationError("Argument was produced for a different circuit")
        repetitions = int.from_bytes(data[offset : offset + 2], "big")
        offset += 2
        challenge = data[offset : offset + DIGEST_SIZE]
        offset += DIGEST_SIZE

        if repetitions == 0:
            raise VerificationError("Argument has no repetitions")
        expected = argument_size(circuit, repetitions)
        if len(data) != expected:
            raise VerificationError(f"Argument length {len(data)} does not match expected {expected}")

        n_private = len(circuit.private_wires)
        n_mul = len(circuit.mul_wires)
        rounds = []
        try:
            for e in derive_challenges(challenge, repetitions):
                seed_a = data[offset : offset + SEED_SIZE]
                seed_b = data[offset + SEED_SIZE : offset + 2 * SEED_SIZE]
                offset += 2 * SEED_SIZE
                commitment = data[offset : offset + DIGEST_SIZE]
                offset += DIGEST_SIZE
                explicit = decode_elements(data[offset : offset + n_private * ELEMENT_SIZE], n_private)
                offset += n_private * ELEMENT_SIZE
                view = decode_elements(data[offset : offset + n_mul * ELEMENT_SIZE], n_mul)
                offset += n_mul * ELEMENT_SIZE

                opens_two = 2 in (e, (e + 1) % PARTIES)
                if not opens_two and any(explicit):
                    raise VerificationError("Unused input block must be zero")
                rounds.append(
                    ArgumentRound(
                        challenge=e,
                        seeds=(seed_a, seed_b),
                        hidden_commitment=commitment,
                        explicit_inputs=tuple(explicit),
                        view=tuple(view),
                    )
                )
        except InvalidInputError as e:
            raise VerificationError(f"Malformed argument: {e}") from e

        return cls(
            circuit_digest=circuit_digest,
            repetitions=repetitions,
            challenge=challenge,
            rounds=tuple(rounds),
        )


def argument_size(circuit: Circuit, repetitions: int) -> int:
    """Exact byte length of any argument for ``circuit``."""
    per_round = (
        2 * SEED_SIZE
        + DIGEST_SIZE
        + (len(circuit.private_wires) + len(circuit.mul_wires)) * ELEMENT_SIZE
    )
    return HEADER_SIZE + repetitions * per_round
