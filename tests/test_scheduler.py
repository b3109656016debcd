import itertools

import pytest
from datetime import datetime, timedelta, timezone

from srscore.exceptions import InvalidRatingError
from srscore.item import retrievability
from srscore.memory_model import ease_from_difficulty, interval_from_stability
from srscore.models import Item, ItemState, Rating
from srscore.parameters import Parameters
from srscore.review_processor import apply_review
from srscore.scheduler import (
    BaseScheduler,
    StabilityScheduler,
    calculate_next_review,
    next_review,
    plan_learning,
    plan_review,
)


class TestLearningLadder:
    def test_good_on_first_step_advances(self, new_item, params, now):
        result = calculate_next_review(new_item, Rating.Good, params, now)

        assert result.state == ItemState.Learning
        assert result.step == 1
        assert result.interval_days == 0
        assert result.due == now + timedelta(minutes=10)
        assert result.difficulty is None
        assert result.stability is None
        assert result.ease_factor == 2.5

    def test_hard_on_first_step_advances(self, new_item, params, now):
        result = calculate_next_review(new_item, Rating.Hard, params, now)
        assert result.state == ItemState.Learning
        assert result.step == 1

    def test_again_resets_to_first_step(self, params, now):
        item = Item(state=ItemState.Learning, step=1, ease_factor=2.2)
        result = calculate_next_review(item, Rating.Again, params, now)

        assert result.state == ItemState.Learning
        assert result.step == 0
        assert result.interval_days == 0
        assert result.due == now + timedelta(minutes=1)
        assert result.ease_factor == 2.2

    def test_relearning_item_without_stability_walks_the_ladder(self, params, now):
        item = Item(state=ItemState.Relearning, step=0)
        assert calculate_next_review(item, Rating.Good, params, now).step == 1
        item = Item(state=ItemState.Relearning, step=1)
        assert calculate_next_review(item, Rating.Again, params, now).step == 0

    def test_good_on_last_step_graduates(self, params, now):
        item = Item(state=ItemState.Learning, step=1)
        result = calculate_next_review(item, Rating.Good, params, now)

        assert result.state == ItemState.Review
        assert result.step is None
        assert result.difficulty == pytest.approx(5.3)
        assert result.stability == pytest.approx(3.7)
        assert result.interval_days == 4
        assert result.due == now + timedelta(days=4)
        assert result.ease_factor == pytest.approx(ease_from_difficulty(5.3))

    def test_hard_on_last_step_graduates(self, params, now):
        item = Item(state=ItemState.Learning, step=1)
        result = calculate_next_review(item, Rating.Hard, params, now)
        assert result.state == ItemState.Review
        assert result.stability == pytest.approx(2.5)
        assert result.interval_days == 3

    def test_easy_graduates_from_any_step(self, new_item, params, now):
        result = calculate_next_review(new_item, Rating.Easy, params, now)

        assert result.state == ItemState.Review
        assert result.difficulty == pytest.approx(5.6)
        assert result.stability == pytest.approx(4.9)
        assert result.interval_days == 5

    def test_missing_step_counts_as_first(self, params, now):
        result = calculate_next_review(Item(), Rating.Good, params, now)
        assert result.step == 1

    def test_step_past_the_ladder_graduates(self, params, now):
        item = Item(state=ItemState.Learning, step=5)
        result = calculate_next_review(item, Rating.Good, params, now)
        assert result.state == ItemState.Review

    def test_single_step_ladder(self, new_item, now):
        params = Parameters(learning_steps=(5.0,))
        again = calculate_next_review(new_item, Rating.Again, params, now)
        good = calculate_next_review(new_item, Rating.Good, params, now)
        assert again.due == now + timedelta(minutes=5)
        assert good.state == ItemState.Review

    def test_empty_ladder_falls_back(self, new_item, now):
        params = Parameters(learning_steps=())
        again = calculate_next_review(new_item, Rating.Again, params, now)
        good = calculate_next_review(new_item, Rating.Good, params, now)
        assert again.due == now + timedelta(minutes=1)
        assert again.step == 0
        assert good.state == ItemState.Review

    def test_fractional_minutes_truncate_to_seconds(self, new_item, now):
        params = Parameters(learning_steps=(0.5, 2.25))
        result = calculate_next_review(new_item, Rating.Good, params, now)
        assert result.due == now + timedelta(seconds=135)

    def test_learning_results_report_desired_retention(self, new_item, now):
        params = Parameters(desired_retention=0.85)
        result = calculate_next_review(new_item, Rating.Good, params, now)
        assert result.retrievability == 0.85
        assert result.rating == Rating.Good

    def test_custom_weights_change_graduation(self, new_item, now):
        params = Parameters(weights=(7.0, 0.5, 10.0))
        result = calculate_next_review(new_item, Rating.Easy, params, now)
        assert result.difficulty == pytest.approx(8.0)
        assert result.stability == pytest.approx(12.4)
        assert result.interval_days == 12


class TestReviewBranch:
    def test_easy_grows_stability_and_ease(self, review_item, params, now):
        result = calculate_next_review(review_item, Rating.Easy, params, now)

        assert result.state == ItemState.Review
        assert result.step is None
        assert result.interval_days >= 1
        assert result.ease_factor == pytest.approx(2.55)
        assert result.stability > 3.0
        assert result.difficulty == pytest.approx(5.15)
        assert result.due > now

    def test_good_keeps_ease(self, review_item, params, now):
        result = calculate_next_review(review_item, Rating.Good, params, now)

        assert result.state == ItemState.Review
        assert result.interval_days >= 1
        assert result.ease_factor == pytest.approx(2.4)
        assert result.difficulty == pytest.approx(5.075)

    def test_hard_lowers_ease(self, review_item, params, now):
        result = calculate_next_review(review_item, Rating.Hard, params, now)
        assert result.state == ItemState.Review
        assert result.ease_factor == pytest.approx(2.25)
        assert result.difficulty == pytest.approx(5.0)

    def test_interval_is_rounded_stability(self, review_item, params, now):
        for rating in (Rating.Hard, Rating.Good, Rating.Easy):
            result = calculate_next_review(review_item, rating, params, now)
            assert result.interval_days == interval_from_stability(result.stability)
            assert result.due == now + timedelta(days=result.interval_days)

    def test_reports_retrievability_at_review_time(self, review_item, params, now):
        result = calculate_next_review(review_item, Rating.Good, params, now)
        expected = retrievability(review_item, now, params.desired_retention)
        assert result.retrievability == pytest.approx(expected)
        assert 0.9 < result.retrievability < 1.0

    def test_same_day_review_reports_full_recall(self, params, now):
        item = Item(
            state=ItemState.Review, stability=3.0, difficulty=5.0, last_reviewed_at=now
        )
        result = calculate_next_review(item, Rating.Good, params, now)
        assert result.retrievability == pytest.approx(1.0)

    def test_missing_ease_is_derived_from_difficulty(self, review_item, params, now):
        item = review_item.model_copy(update={"ease_factor": None})
        result = calculate_next_review(item, Rating.Good, params, now)
        assert result.ease_factor == pytest.approx(ease_from_difficulty(5.075))

    def test_missing_difficulty_starts_fresh(self, review_item, params, now):
        item = review_item.model_copy(update={"difficulty": None})
        result = calculate_next_review(item, Rating.Good, params, now)
        assert result.difficulty == pytest.approx(5.3)

    def test_zero_retrievability_falls_back_to_desired_retention(self, params, now):
        item = Item(state=ItemState.Review, stability=0.0, difficulty=5.0)
        direct = plan_review(item, Rating.Good, params, now, 0.0)
        fallback = plan_review(item, Rating.Good, params, now, None)
        assert direct == fallback

    def test_stability_routes_to_review_whatever_the_state(self, params, now):
        item = Item(state=ItemState.Learning, step=0, stability=3.0, difficulty=5.0)
        result = calculate_next_review(item, Rating.Good, params, now)
        assert result.state == ItemState.Review


class TestRelearnOnFailure:
    def test_again_relearns(self, review_item, params, now):
        result = calculate_next_review(review_item, Rating.Again, params, now)

        assert result.state == ItemState.Relearning
        assert result.step == 0
        assert result.interval_days == 0
        assert result.due > now
        assert result.due == now + timedelta(minutes=10)
        assert result.difficulty == pytest.approx(4.85)
        assert result.ease_factor == pytest.approx(2.05)
        assert result.stability == pytest.approx(0.3)

    def test_uses_first_relearning_step(self, review_item, now):
        params = Parameters(relearning_steps=(30.0, 60.0))
        result = calculate_next_review(review_item, Rating.Again, params, now)
        assert result.due == now + timedelta(minutes=30)

    def test_empty_relearning_ladder_falls_back(self, review_item, now):
        params = Parameters(relearning_steps=())
        result = calculate_next_review(review_item, Rating.Again, params, now)
        assert result.due == now + timedelta(minutes=10)

    def test_relearned_item_returns_to_review(self, review_item, params, now):
        lapsed = calculate_next_review(review_item, Rating.Again, params, now)
        item = apply_review(review_item, lapsed, now)
        later = now + timedelta(minutes=10)
        result = calculate_next_review(item, Rating.Good, params, later)
        assert result.state == ItemState.Review
        assert result.interval_days >= 1


class TestBoundary:
    def test_rejects_invalid_rating(self, new_item, params, now):
        with pytest.raises(InvalidRatingError):
            calculate_next_review(new_item, "sometimes", params, now)
        with pytest.raises(InvalidRatingError):
            calculate_next_review(new_item, 0, params, now)

    def test_accepts_rating_names(self, new_item, params, now):
        result = calculate_next_review(new_item, "good", params, now)
        assert result.rating is Rating.Good

    def test_naive_now_is_utc(self, new_item, params):
        result = calculate_next_review(
            new_item, Rating.Good, params, datetime(2024, 1, 15, 10, 0)
        )
        assert result.due == datetime(2024, 1, 15, 10, 10, tzinfo=timezone.utc)

    def test_input_item_is_not_modified(self, review_item, params, now):
        before = review_item.model_dump()
        calculate_next_review(review_item, Rating.Again, params, now)
        calculate_next_review(review_item, Rating.Easy, params, now)
        assert review_item.model_dump() == before

    def test_deterministic(self, review_item, params, now):
        first = calculate_next_review(review_item, Rating.Good, params, now)
        second = calculate_next_review(review_item, Rating.Good, params, now)
        assert first == second

    def test_next_review_is_the_entry_point(self):
        assert next_review is calculate_next_review

    def test_plan_learning_directly(self, new_item, params, now):
        plan = plan_learning(new_item, Rating.Again, params, now)
        assert plan.step == 0


class TestInvariants:
    @pytest.mark.parametrize(
        "ratings", list(itertools.product(list(Rating), repeat=4))
    )
    def test_reachable_states_respect_bounds(self, ratings, params, now):
        item = Item(learner_id=1, unit_id=2, state=ItemState.Learning, step=0)
        ts = now
        for rating in ratings:
            result = calculate_next_review(item, rating, params, ts)

            if result.difficulty is not None:
                assert 1.0 <= result.difficulty <= 10.0
            if result.ease_factor is not None:
                assert 1.3 <= result.ease_factor <= 3.7
            if result.state == ItemState.Review:
                assert result.step is None
                assert result.stability is not None
                assert result.interval_days >= 1
            else:
                assert result.step is not None
                assert result.interval_days == 0
            assert result.due > ts

            item = apply_review(item, result, ts)
            ts = result.due


class TestMaximumInterval:
    def test_interval_is_capped_on_graduation(self, now):
        params = Parameters(maximum_interval=3)
        item = Item(state=ItemState.Learning, step=1)
        result = calculate_next_review(item, Rating.Good, params, now)
        assert result.stability == pytest.approx(3.7)
        assert result.interval_days == 3
        assert result.due == now + timedelta(days=3)

    def test_stability_beyond_maximum_is_kept(self, review_item, params, now):
        item = review_item.model_copy(update={"stability": 35000.0})
        result = calculate_next_review(item, Rating.Easy, params, now)
        assert result.stability > params.maximum_interval
        assert result.interval_days == params.maximum_interval
        assert result.due == now + timedelta(days=params.maximum_interval)

    def test_huge_stability_does_not_overflow_due(self, review_item, params, now):
        item = review_item.model_copy(update={"stability": 1e300})
        result = calculate_next_review(item, Rating.Good, params, now)
        assert result.interval_days == params.maximum_interval

    def test_many_easy_reviews_stay_schedulable(self, new_item, params, now):
        item = new_item
        for _ in range(100):
            result = calculate_next_review(item, Rating.Easy, params, now)
            assert 1 <= result.interval_days <= params.maximum_interval
            assert result.due == now + timedelta(days=result.interval_days)
            item = apply_review(item, result, now)
        assert item.repetitions == 100
        assert item.state == ItemState.Review
        assert item.stability > params.maximum_interval
        assert item.interval == params.maximum_interval


class TestStabilityScheduler:
    def test_is_a_base_scheduler(self):
        assert isinstance(StabilityScheduler(), BaseScheduler)

    def test_defaults_to_default_parameters(self):
        assert StabilityScheduler().params == Parameters()

    def test_delegates_with_bound_parameters(self, review_item, now):
        params = Parameters(relearning_steps=(20.0,))
        scheduler = StabilityScheduler(params)
        result = scheduler.compute_next_state(review_item, Rating.Again, now)
        assert result == calculate_next_review(review_item, Rating.Again, params, now)
        assert result.due == now + timedelta(minutes=20)
