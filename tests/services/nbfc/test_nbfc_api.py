"""Tests for the NBFC service API."""

import base64

import pytest
from httpx import AsyncClient

from shared.fhe import encrypt_value, load_evaluation_context
from shared.zk import PUBLIC_THRESHOLD, PublicInputs, get_comparator_circuit, verify


EXPENSES = [1200, 800, 350, 450, 200]


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


async def open_session(client: AsyncClient) -> tuple[str, bytes]:
    response = await client.post("/api/v1/sessions")
    assert response.status_code == 201
    body = response.json()
    return body["session_id"], base64.b64decode(body["evaluation_key"])


def proof_request(session_id: str, evaluation_key: bytes, salary: int, threshold: int) -> dict:
    """Encrypt like an applicant would: with the public evaluation key only."""
    context = load_evaluation_context(evaluation_key)
    return {
        "session_id": session_id,
        "encrypted_salary": b64(encrypt_value(context, salary).data),
        "encrypted_expenses": [b64(encrypt_value(context, e).data) for e in EXPENSES],
        "evaluation_key": b64(evaluation_key),
        "threshold": threshold,
    }


class TestSessions:
    """Tests for session endpoints."""

    @pytest.mark.asyncio
    async def test_create_session(self, nbfc_client: AsyncClient, nbfc_service) -> None:
        """Test a session hands out a public evaluation key."""
        session_id, evaluation_key = await open_session(nbfc_client)

        assert len(nbfc_service.sessions) == 1
        assert not load_evaluation_context(evaluation_key).is_private()
        assert nbfc_service.sessions.get(session_id).evaluation_key == evaluation_key

    @pytest.mark.asyncio
    async def test_close_session(self, nbfc_client: AsyncClient, nbfc_service) -> None:
        """Test closing a session discards it."""
        session_id, _ = await open_session(nbfc_client)

        response = await nbfc_client.delete(f"/api/v1/sessions/{session_id}")
        assert response.status_code == 204
        assert len(nbfc_service.sessions) == 0

        response = await nbfc_client.delete(f"/api/v1/sessions/{session_id}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_session_limit(self, nbfc_client: AsyncClient, nbfc_service) -> None:
        """Test a full session store refuses new sessions with 503."""
        nbfc_service.sessions.max_sessions = 1
        await open_session(nbfc_client)

        response = await nbfc_client.post("/api/v1/sessions")

        assert response.status_code == 503
        assert len(nbfc_service.sessions) == 1


class TestCreditProofs:
    """Tests for the credit proof endpoint."""

    @pytest.mark.asyncio
    async def test_proof_generated(self, nbfc_client: AsyncClient) -> None:
        """Test a salary above the threshold yields a verifiable proof."""
        session_id, key = await open_session(nbfc_client)

        response = await nbfc_client.post(
            "/api/v1/credit-proofs", json=proof_request(session_id, key, 6000, 5000)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"

        public_inputs = PublicInputs.from_bytes(base64.b64decode(body["public_inputs"]))
        assert public_inputs[PUBLIC_THRESHOLD] == 5000

        nonce = base64.b64decode(body["nonce"])
        verify(
            get_comparator_circuit(16),
            base64.b64decode(body["argument"]),
            public_inputs,
            context=nonce,
        )

    @pytest.mark.asyncio
    async def test_salary_below_threshold(self, nbfc_client: AsyncClient) -> None:
        """Test a low salary is a rejected outcome, not an error."""
        session_id, key = await open_session(nbfc_client)

        response = await nbfc_client.post(
            "/api/v1/credit-proofs", json=proof_request(session_id, key, 4000, 5000)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "rejected"
        assert body["reason"] == "salary threshold not met"
        assert body["argument"] is None
        assert body["nonce"] is None

    @pytest.mark.asyncio
    async def test_unknown_session(self, nbfc_client: AsyncClient, encryption_session) -> None:
        """Test an unknown session is a 404."""
        request = proof_request("no-such-session", encryption_session.evaluation_key, 6000, 5000)

        response = await nbfc_client.post("/api/v1/credit-proofs", json=request)

        assert response.status_code == 404
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_foreign_evaluation_key(self, nbfc_client: AsyncClient, encryption_session) -> None:
        """Test an evaluation key from another session is refused."""
        session_id, _ = await open_session(nbfc_client)
        request = proof_request(session_id, encryption_session.evaluation_key, 6000, 5000)

        response = await nbfc_client.post("/api/v1/credit-proofs", json=request)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_threshold_out_of_range(self, nbfc_client: AsyncClient) -> None:
        """Test a threshold wider than the circuit is a 400."""
        session_id, key = await open_session(nbfc_client)

        response = await nbfc_client.post(
            "/api/v1/credit-proofs", json=proof_request(session_id, key, 6000, 2**16)
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_empty_expenses(self, nbfc_client: AsyncClient) -> None:
        """Test nothing to average is a 400."""
        session_id, key = await open_session(nbfc_client)
        request = proof_request(session_id, key, 6000, 5000)
        request["encrypted_expenses"] = []

        response = await nbfc_client.post("/api/v1/credit-proofs", json=request)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_base64(self, nbfc_client: AsyncClient) -> None:
        """Test malformed byte fields fail validation."""
        session_id, key = await open_session(nbfc_client)
        request = proof_request(session_id, key, 6000, 5000)
        request["encrypted_salary"] = "not base64!"

        response = await nbfc_client.post("/api/v1/credit-proofs", json=request)

        assert response.status_code == 422


class TestExpenseRatio:
    """Tests for the expense ratio reveal."""

    @pytest.mark.asyncio
    async def test_reveal(self, nbfc_client: AsyncClient) -> None:
        """Test the revealed ratio reflects average / salary plus bounded noise."""
        session_id, key = await open_session(nbfc_client)
        proof = (
            await nbfc_client.post(
                "/api/v1/credit-proofs", json=proof_request(session_id, key, 6000, 5000)
            )
        ).json()

        response = await nbfc_client.post(
            f"/api/v1/sessions/{session_id}/expense-ratio",
            json={"encrypted_average": proof["encrypted_average"]},
        )

        assert response.status_code == 200
        # 600 / 6000 is 1000 bp; noise of at most 5 adds at most 9 bp
        assert 1000 <= response.json()["expense_ratio"] <= 1009

    @pytest.mark.asyncio
    async def test_reveal_foreign_ciphertext(self, nbfc_client: AsyncClient) -> None:
        """Test only the average issued with the proof can be revealed."""
        session_id, key = await open_session(nbfc_client)
        await nbfc_client.post(
            "/api/v1/credit-proofs", json=proof_request(session_id, key, 6000, 5000)
        )
        # Anyone holding the evaluation key can encrypt a value of their choice
        chosen = encrypt_value(load_evaluation_context(key), 6000)

        response = await nbfc_client.post(
            f"/api/v1/sessions/{session_id}/expense-ratio",
            json={"encrypted_average": b64(chosen.data)},
        )

        assert response.status_code == 400
        assert "10000" not in response.text

    @pytest.mark.asyncio
    async def test_reveal_once(self, nbfc_client: AsyncClient) -> None:
        """Test the issued average can be revealed a single time."""
        session_id, key = await open_session(nbfc_client)
        proof = (
            await nbfc_client.post(
                "/api/v1/credit-proofs", json=proof_request(session_id, key, 6000, 5000)
            )
        ).json()
        body = {"encrypted_average": proof["encrypted_average"]}

        first = await nbfc_client.post(f"/api/v1/sessions/{session_id}/expense-ratio", json=body)
        second = await nbfc_client.post(f"/api/v1/sessions/{session_id}/expense-ratio", json=body)

        assert first.status_code == 200
        assert second.status_code == 400

    @pytest.mark.asyncio
    async def test_reveal_before_proof(self, nbfc_client: AsyncClient) -> None:
        """Test a session without a proof has no salary to compare with."""
        session_id, key = await open_session(nbfc_client)
        average = encrypt_value(load_evaluation_context(key), 600)

        response = await nbfc_client.post(
            f"/api/v1/sessions/{session_id}/expense-ratio",
            json={"encrypted_average": b64(average.data)},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_reveal_unknown_session(self, nbfc_client: AsyncClient) -> None:
        response = await nbfc_client.post(
            "/api/v1/sessions/no-such-session/expense-ratio",
            json={"encrypted_average": b64(b"\x01")},
        )

        assert response.status_code == 404


class TestHealth:
    """Tests for health endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, nbfc_client: AsyncClient) -> None:
        response = await nbfc_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "nbfc"
