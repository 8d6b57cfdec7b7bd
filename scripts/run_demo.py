#!/usr/bin/env python3
"""
Credit Evaluation Demo
======================

Walks one applicant through the full flow: encryption session, salary
threshold proof with encrypted expense average, and the Bank's decision.

By default both services run in-process. Pass --nbfc-url and --bank-url
to drive running services over HTTP instead.

Usage:
    python scripts/run_demo.py [--salary 6000] [--threshold 5000]
    python scripts/run_demo.py --nbfc-url http://localhost:50051 --bank-url http://localhost:50052
"""

import argparse
import asyncio
import base64
import sys
from pathlib import Path

import httpx

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from services.bank.models import LoanDecision, LoanDecisionRequest
from services.bank.service import BankService
from services.nbfc.models import CreditProofRequest, CreditProofResponse
from services.nbfc.service import NBFCService
from services.nbfc.sessions import SessionStore
from shared.config import settings
from shared.credit import ProtocolStatus
from shared.fhe import encrypt_value, load_evaluation_context
from shared.logging import setup_logging


DEFAULT_EXPENSES = [1200, 800, 350, 450, 200]


def encrypt_application(
    session_id: str,
    evaluation_key: bytes,
    salary: int,
    expenses: list[int],
    threshold: int,
) -> CreditProofRequest:
    """What the applicant does: encrypt under the session's public key."""
    context = load_evaluation_context(evaluation_key)
    return CreditProofRequest(
        session_id=session_id,
        encrypted_salary=encrypt_value(context, salary).data,
        encrypted_expenses=[encrypt_value(context, e).data for e in expenses],
        evaluation_key=evaluation_key,
        threshold=threshold,
    )


def loan_request(
    session_id: str,
    proof: CreditProofResponse,
    threshold: int,
    max_expense_ratio: int,
) -> LoanDecisionRequest:
    return LoanDecisionRequest(
        session_id=session_id,
        argument=proof.argument,
        public_inputs=proof.public_inputs,
        encrypted_average=proof.encrypted_average,
        nonce=proof.nonce,
        threshold=threshold,
        max_expense_ratio=max_expense_ratio,
    )


async def run_local(args: argparse.Namespace) -> tuple[CreditProofResponse, LoanDecision | None]:
    nbfc = NBFCService(SessionStore())
    bank = BankService()

    session = nbfc.create_session()
    print(f"Session {session.session_id} created")

    request = encrypt_application(
        session.session_id, session.evaluation_key, args.salary, args.expenses, args.threshold
    )
    print("Generating threshold proof...")
    proof = await nbfc.generate_credit_proof_async(request)
    if proof.status is not ProtocolStatus.SUCCESS:
        return proof, None

    async def reveal(session_id: str, encrypted_average: bytes) -> int:
        return await asyncio.to_thread(nbfc.reveal_expense_ratio, session_id, encrypted_average)

    print("Verifying proof and deciding...")
    decision = await bank.verify_proof_and_decide(
        loan_request(session.session_id, proof, args.threshold, args.max_expense_ratio),
        reveal,
    )
    return proof, decision


async def run_remote(args: argparse.Namespace) -> tuple[CreditProofResponse, LoanDecision | None]:
    timeout = httpx.Timeout(300.0)
    async with (
        httpx.AsyncClient(base_url=args.nbfc_url, timeout=timeout) as nbfc,
        httpx.AsyncClient(base_url=args.bank_url, timeout=timeout) as bank,
    ):
        response = await nbfc.post("/api/v1/sessions")
        response.raise_for_status()
        session = response.json()
        print(f"Session {session['session_id']} created")

        request = encrypt_application(
            session["session_id"],
            base64.b64decode(session["evaluation_key"]),
            args.salary,
            args.expenses,
            args.threshold,
        )
        print("Generating threshold proof...")
        response = await nbfc.post("/api/v1/credit-proofs", json=request.model_dump(mode="json"))
        response.raise_for_status()
        proof = CreditProofResponse.model_validate(response.json())
        if proof.status is not ProtocolStatus.SUCCESS:
            return proof, None

        body = loan_request(session["session_id"], proof, args.threshold, args.max_expense_ratio)
        print("Verifying proof and deciding...")
        response = await bank.post("/api/v1/loan-decisions", json=body.model_dump(mode="json"))
        response.raise_for_status()
        return proof, LoanDecision.model_validate(response.json())


def print_outcome(proof: CreditProofResponse, decision: LoanDecision | None) -> None:
    """Print a summary of the evaluation."""
    rows = [("Threshold proof", proof.status.value)]
    if proof.argument is not None:
        rows.append(("Argument size", f"{len(proof.argument):,} bytes"))
    if proof.reason:
        rows.append(("Reason", proof.reason))
    if decision is not None:
        rows.append(("Decision", "✓ eligible" if decision.eligible else "✗ not eligible"))
        rows.append(("Reason", decision.reason))
        rows.append(("Credit score", str(decision.score)))

    print(f"\n{'='*60}")
    print("CREDIT EVALUATION")
    print(f"{'='*60}")
    for step, result in rows:
        print(f"{step:<20} | {result}")
    print()


async def main() -> int:
    parser = argparse.ArgumentParser(description="Run the privacy-preserving credit evaluation demo")
    parser.add_argument("--salary", type=int, default=6000)
    parser.add_argument("--threshold", type=int, default=5000)
    parser.add_argument("--expenses", type=int, nargs="+", default=DEFAULT_EXPENSES)
    parser.add_argument("--max-expense-ratio", type=int,
                        default=settings.credit.default_max_expense_ratio,
                        help="Basis points, 10000 = 100%%")
    parser.add_argument("--nbfc-url", type=str, help="Use a running NBFC service")
    parser.add_argument("--bank-url", type=str, help="Use a running Bank service")
    args = parser.parse_args()

    setup_logging(log_level="WARNING")

    if bool(args.nbfc_url) != bool(args.bank_url):
        parser.error("--nbfc-url and --bank-url must be given together")

    runner = run_remote if args.nbfc_url else run_local
    proof, decision = await runner(args)
    print_outcome(proof, decision)
    return 0 if decision is not None and decision.eligible else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
