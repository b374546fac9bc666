"""Shared fixtures for the quiz runner tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from quiz_runner.core.question_bank_loader import parse_question_bank
from quiz_runner.core.quiz_manager import QuizManager
from quiz_runner.core.services.question_store import QuestionStore
from quiz_runner.core.services.quiz_engine import QuizEngine

SCENARIO_BANK = [
    {
        "question_number": "101",
        "question_text": "Which port does HTTPS use by default?",
        "options": {"A": "80", "B": "443", "C": "22", "D": "21"},
        "correct_answer": "B",
        "explanation": "HTTPS listens on 443.",
    },
    {
        "question_number": "102",
        "question_text": "Which of these are passive reconnaissance techniques?",
        "options": {"A": "WHOIS lookup", "B": "Port scan", "C": "OSINT search", "D": "Ping sweep"},
        "correct_answer": "A C",
        "explanation": "Passive techniques never touch the target.",
    },
    {
        "question_number": "103",
        "question_text": "Configure the firewall rules shown in the exhibit.",
        "is_simulation": True,
        "simulation_details": "Allow 443 inbound, deny everything else.",
    },
]


@pytest.fixture
def scenario_bank() -> list[dict]:
    return json.loads(json.dumps(SCENARIO_BANK))


@pytest.fixture
def store(scenario_bank) -> QuestionStore:
    return QuestionStore(parse_question_bank(json.dumps(scenario_bank)))


@pytest.fixture
def engine(store) -> QuizEngine:
    return QuizEngine(store)


@pytest.fixture
def manager(store) -> QuizManager:
    return QuizManager(store)


@pytest.fixture
def bank_file(tmp_path: Path, scenario_bank) -> Path:
    path = tmp_path / "questions_bank.json"
    path.write_text(json.dumps(scenario_bank), encoding="utf-8")
    return path
