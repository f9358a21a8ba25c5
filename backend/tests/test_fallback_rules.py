import sys
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))

from pharmabot.ai.fallback import RULES, CannedResponseRule, match_rule, resolve_fallback


@pytest.mark.parametrize(
    "message,bucket",
    [
        ("Where can I find vitamin C?", "search"),
        ("search for insulin", "search"),
        ("How much does paracetamol cost?", "price"),
        ("what is the PRICE of ibuprofen", "price"),
        ("Do you deliver to Bole?", "delivery"),
        ("Can my pharmacy register here?", "pharmacy_onboarding"),
        ("I have a prescription from my doctor", "prescription"),
        ("hello", "general"),
    ],
)
def test_buckets_follow_keyword_rules(message, bucket):
    assert resolve_fallback(message).bucket == bucket


def test_first_matching_rule_wins():
    # mentions price and delivery; price is checked first
    assert resolve_fallback("what does delivery cost?").bucket == "price"
    # "where" beats "prescription"
    assert resolve_fallback("where do I upload my prescription").bucket == "search"


def test_register_without_pharmacy_is_general():
    assert resolve_fallback("how do I register an account").bucket == "general"


def test_search_template_echoes_original_message():
    reply = resolve_fallback("Where can I find vitamin C?")
    assert "vitamin C" in reply.text
    assert "Compare prices" in reply.text
    assert "delivery" in reply.text


def test_price_template():
    reply = resolve_fallback("How much does paracetamol cost?")
    assert reply.text.startswith("💰 **Price Comparison")


def test_general_template_keeps_original_casing_and_braces():
    reply = resolve_fallback("Hello {there}")
    assert reply.bucket == "general"
    assert '"Hello {there}"' in reply.text
    assert "not a medical advisor" in reply.text


def test_fallback_is_pure():
    first = resolve_fallback("Tell me about refunds")
    second = resolve_fallback("Tell me about refunds")
    assert first == second


def test_rules_are_data_driven():
    extra = RULES + (CannedResponseRule("returns", "Returns: {message}", any_of=("refund",)),)
    assert match_rule("i want a refund", extra).name == "returns"
    assert resolve_fallback("I want a refund", extra).text == "Returns: I want a refund"
