import uuid

import pytest

from hiring_core.errors import Forbidden, NotFound, ValidationFailed
from hiring_core.models.rated_profile import CoachProfile, MentorProfile
from hiring_core.models.score import Score
from hiring_core.services.score_aggregator import ScoreAggregator, compute_aggregate, validate_rating

from conftest import context_for, count_rows, ref, reload


@pytest.mark.unit
@pytest.mark.parametrize(
    "ratings,expected",
    [
        ([], (None, 0)),
        ([5, 4, 3], (4.0, 3)),
        ([1, 4, 3], (2.7, 3)),
        ([1, 2, 2], (1.7, 3)),
        # Half-up, not banker's rounding: 1.25 -> 1.3
        ([1, 1, 1, 2], (1.3, 4)),
        ([5], (5.0, 1)),
    ],
)
def test_compute_aggregate(ratings, expected):
    assert compute_aggregate(ratings) == expected


@pytest.mark.unit
@pytest.mark.parametrize("rating", [0, 6, -1, 3.5, "4", None, True])
def test_validate_rating_rejects_out_of_range_values(rating):
    with pytest.raises(ValidationFailed) as exc_info:
        validate_rating(rating)
    assert exc_info.value.code == "INVALID_RATING"


async def _raters(seed, count):
    return [ref(await seed.account(name=f"Rater {index}")) for index in range(count)]


@pytest.mark.db
@pytest.mark.asyncio
async def test_aggregate_follows_every_upsert(db, seed):
    coach = ref(await seed.coach())
    first, second, third = await _raters(seed, 3)
    await db.commit()
    service = ScoreAggregator(db)

    await service.upsert_score("coach", coach.id, first.id, 5)
    await service.upsert_score("coach", coach.id, second.id, 4)
    result = await service.upsert_score("coach", coach.id, third.id, 3, comment="Helpful")

    assert (result.aggregate.rating, result.aggregate.count) == (4.0, 3)
    assert result.score.comment == "Helpful"
    profile = await reload(db, CoachProfile, coach.id)
    assert (profile.rating, profile.review_count) == (4.0, 3)

    # Re-rating replaces the rater's earlier score
    result = await service.upsert_score("coach", coach.id, first.id, 1)

    assert (result.aggregate.rating, result.aggregate.count) == (2.7, 3)
    assert await count_rows(db, Score, Score.target_id == coach.id) == 3
    profile = await reload(db, CoachProfile, coach.id)
    assert (profile.rating, profile.review_count) == (2.7, 3)


@pytest.mark.db
@pytest.mark.asyncio
async def test_mentor_aggregate_uses_mentor_fields(db, seed):
    mentor = ref(await seed.mentor())
    first, second = await _raters(seed, 2)
    await db.commit()
    service = ScoreAggregator(db)

    await service.upsert_score("mentor", mentor.id, first.id, 4)
    await service.upsert_score("mentor", mentor.id, second.id, 5)

    profile = await reload(db, MentorProfile, mentor.id)
    assert (profile.mentor_rating, profile.mentor_review_count) == (4.5, 2)


@pytest.mark.db
@pytest.mark.asyncio
async def test_invalid_rating_leaves_aggregate_untouched(db, seed):
    coach = ref(await seed.coach())
    (rater,) = await _raters(seed, 1)
    await db.commit()
    service = ScoreAggregator(db)
    await service.upsert_score("coach", coach.id, rater.id, 4)

    with pytest.raises(ValidationFailed):
        await service.upsert_score("coach", coach.id, rater.id, 9)

    profile = await reload(db, CoachProfile, coach.id)
    assert (profile.rating, profile.review_count) == (4.0, 1)


@pytest.mark.db
@pytest.mark.asyncio
async def test_upsert_rejects_self_rating_and_unknown_targets(db, seed):
    owner = ref(await seed.account(name="Coach"))
    coach = ref(await seed.coach(owner))
    await db.commit()
    service = ScoreAggregator(db)

    with pytest.raises(Forbidden) as exc_info:
        await service.upsert_score("coach", coach.id, owner.id, 5)
    assert exc_info.value.code == "SELF_RATING"

    with pytest.raises(ValidationFailed) as exc_info:
        await service.upsert_score("recruiter", coach.id, uuid.uuid4(), 5)
    assert exc_info.value.code == "UNKNOWN_TARGET_TYPE"

    with pytest.raises(NotFound) as exc_info:
        await service.upsert_score("mentor", coach.id, uuid.uuid4(), 5)
    assert exc_info.value.code == "TARGET_NOT_FOUND"

    assert await count_rows(db, Score) == 0


@pytest.mark.db
@pytest.mark.asyncio
async def test_platform_admin_deletes_score_and_aggregate_follows(db, seed):
    coach = ref(await seed.coach())
    first, second = await _raters(seed, 2)
    admin = ref(await seed.account(name="Moderator", is_platform_admin=True))
    await db.commit()
    service = ScoreAggregator(db)
    kept = await service.upsert_score("coach", coach.id, first.id, 2)
    removed = await service.upsert_score("coach", coach.id, second.id, 5)

    with pytest.raises(Forbidden) as exc_info:
        await service.delete_score("coach", removed.score.id, await context_for(db, first.id))
    assert exc_info.value.code == "PLATFORM_ADMIN_REQUIRED"

    admin_ctx = await context_for(db, admin.id)
    aggregate = await service.delete_score("coach", removed.score.id, admin_ctx)
    assert (aggregate.rating, aggregate.count) == (2.0, 1)

    aggregate = await service.delete_score("coach", kept.score.id, admin_ctx)
    assert (aggregate.rating, aggregate.count) == (None, 0)
    profile = await reload(db, CoachProfile, coach.id)
    assert (profile.rating, profile.review_count) == (None, 0)

    with pytest.raises(NotFound):
        await service.delete_score("coach", kept.score.id, admin_ctx)


@pytest.mark.db
@pytest.mark.asyncio
async def test_recompute_repairs_a_drifted_aggregate(db, seed):
    coach = ref(await seed.coach())
    first, second = await _raters(seed, 2)
    await db.commit()
    service = ScoreAggregator(db)
    await service.upsert_score("coach", coach.id, first.id, 3)
    await service.upsert_score("coach", coach.id, second.id, 4)

    profile = await reload(db, CoachProfile, coach.id)
    profile.rating, profile.review_count = 1.0, 9
    await db.commit()

    aggregate = await service.recompute("coach", coach.id)

    assert (aggregate.rating, aggregate.count) == (3.5, 2)
    profile = await reload(db, CoachProfile, coach.id)
    assert (profile.rating, profile.review_count) == (3.5, 2)
