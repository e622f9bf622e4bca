import math
from datetime import datetime, timedelta, timezone

import pytest

from srs_core.errors import CardIntegrityError
from srs_core.fsrs.constants import CardState
from srs_core.fsrs.memory_state import (
    as_utc,
    calculate_retrievability,
    check_integrity,
    days_between,
    initialize_new_card,
)


def test_initialize_new_card(now):
    card = initialize_new_card(now, deck_id=7)

    assert card.state == CardState.NEW
    assert card.stability == 0.0
    assert card.difficulty == 0.0
    assert card.due == now
    assert card.last_review is None
    assert card.reps == 0
    assert card.lapses == 0
    assert card.deck_id == 7


def test_retrievability_is_one_at_due(make_card, now):
    card = make_card(due=now)
    assert calculate_retrievability(card, now) == 1.0


def test_retrievability_is_one_before_due(make_card, now):
    card = make_card(due=now + timedelta(days=3))
    assert calculate_retrievability(card, now) == 1.0


def test_retrievability_after_stability_days_is_one_over_e(make_card, now):
    card = make_card(stability=10.0, due=now - timedelta(days=10))
    assert calculate_retrievability(card, now) == pytest.approx(math.exp(-1))


def test_retrievability_decreases_with_time(make_card, now):
    card = make_card(stability=5.0, due=now)
    r1 = calculate_retrievability(card, now + timedelta(days=1))
    r2 = calculate_retrievability(card, now + timedelta(days=4))
    assert 1.0 > r1 > r2 > 0.0


def test_retrievability_new_card(now):
    card = initialize_new_card(now)
    assert calculate_retrievability(card, now + timedelta(days=100)) == 1.0


def test_retrievability_rejects_zero_stability(make_card, now):
    card = make_card(stability=10.0)
    card.stability = 0.0
    with pytest.raises(CardIntegrityError):
        calculate_retrievability(card, now)


def test_integrity_missing_last_review(make_card):
    card = make_card(state=CardState.LEARNING, stability=1.0)
    card.last_review = None
    with pytest.raises(CardIntegrityError, match="last_review"):
        check_integrity(card)


def test_integrity_difficulty_out_of_range(make_card):
    card = make_card(difficulty=11.0)
    with pytest.raises(CardIntegrityError, match="difficulty"):
        check_integrity(card)


def test_integrity_ignores_new_cards(now):
    check_integrity(initialize_new_card(now))


def test_naive_timestamps_are_utc():
    naive = datetime(2026, 1, 1, 8, 0)
    assert as_utc(naive) == datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc)


def test_days_between_mixed_timezones():
    start = datetime(2026, 1, 1, 0, 0, tzinfo=timezone.utc)
    end = datetime(2026, 1, 2, 2, 0, tzinfo=timezone(timedelta(hours=2)))
    assert days_between(start, end) == pytest.approx(1.0)
