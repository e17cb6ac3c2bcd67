import json

import pytest

from courtbook.errors import (
    CourtNotFound,
    InvalidDayOfWeek,
    InvalidPrice,
    InvalidTimeRange,
    RuleConflict,
    RuleNotFound,
)
from courtbook.models.generated import AvailabilityRules, Facilities
from courtbook.services import rules


def test_create_and_list_ordered(db, court):
    rules.create_rule(db, court.id, day_of_week=1, start_time=1080, end_time=1320)
    rules.create_rule(db, court.id, day_of_week=0, start_time=600, end_time=900)

    listed = [(r.day_of_week, r.start_time) for r in rules.list_rules(db, court.id)]
    assert listed == [(0, 600), (1, 540), (1, 1080)]


def test_adjacent_rule_is_allowed(db, court):
    rule = rules.create_rule(db, court.id, day_of_week=1, start_time=1080, end_time=1200)
    assert rule.is_active == 1


def test_overlapping_rule_conflicts(db, court):
    with pytest.raises(RuleConflict) as exc:
        rules.create_rule(db, court.id, day_of_week=1, start_time=1020, end_time=1140)
    assert exc.value.details["conflicting_rule"]["start_time"] == 540


def test_same_times_other_day_is_fine(db, court):
    rule = rules.create_rule(db, court.id, day_of_week=2, start_time=540, end_time=1080)
    assert rule.day_of_week == 2


@pytest.mark.parametrize("start,end", [(600, 600), (700, 600), (-30, 600), (600, 1440)])
def test_invalid_range(db, court, start, end):
    with pytest.raises(InvalidTimeRange):
        rules.create_rule(db, court.id, day_of_week=2, start_time=start, end_time=end)


def test_invalid_day_and_price(db, court):
    with pytest.raises(InvalidDayOfWeek):
        rules.create_rule(db, court.id, day_of_week=7, start_time=600, end_time=660)
    with pytest.raises(InvalidPrice):
        rules.create_rule(db, court.id, day_of_week=2, start_time=600, end_time=660,
                          price_per_hour_override=0)


def test_unknown_court(db, court):
    with pytest.raises(CourtNotFound):
        rules.create_rule(db, 999, day_of_week=2, start_time=600, end_time=660)


def test_update_rechecks_overlap_excluding_itself(db, court):
    evening = rules.create_rule(db, court.id, day_of_week=1, start_time=1080, end_time=1200)

    widened = rules.update_rule(db, court.id, evening.id, {"end_time": 1260})
    assert widened.end_time == 1260

    with pytest.raises(RuleConflict):
        rules.update_rule(db, court.id, evening.id, {"start_time": 1050})


def test_update_of_foreign_rule_is_not_found(db, court):
    with pytest.raises(RuleNotFound):
        rules.update_rule(db, court.id, 12345, {"end_time": 1260})


def test_delete_deactivates_and_frees_the_window(db, court):
    monday = db.query(AvailabilityRules).filter_by(court_id=court.id).one()

    deleted = rules.delete_rule(db, court.id, monday.id)
    assert deleted.is_active == 0
    assert rules.list_rules(db, court.id, active_only=True) == []

    replacement = rules.create_rule(db, court.id, day_of_week=1, start_time=600, end_time=900)
    assert replacement.id != monday.id


def test_recreating_deactivated_rule_reactivates_it(db, court):
    monday = db.query(AvailabilityRules).filter_by(court_id=court.id).one()
    rules.delete_rule(db, court.id, monday.id)

    again = rules.create_rule(db, court.id, day_of_week=1, start_time=540, end_time=1080,
                              price_per_hour_override=30.0)
    assert again.id == monday.id
    assert again.is_active == 1
    assert again.price_per_hour_override == 30.0


def test_rules_from_opening_hours_skips_bad_days():
    parsed = rules.rules_from_opening_hours({
        "Monday": {"open": "09:00", "close": "18:00"},
        "sunday": {"open": "10:00", "close": "14:00"},
        "funday": {"open": "09:00", "close": "10:00"},
        "tuesday": {"open": "9am", "close": "5pm"},
        "wednesday": None,
        "thursday": {"open": "20:00", "close": "08:00"},
    })
    assert parsed == [(0, 600, 840), (1, 540, 1080)]


def test_seed_creates_missing_rules_only(db, court):
    created = rules.seed_rules_from_opening_hours(db, court.id)

    # monday already has an identical active rule; saturday is new
    assert [(r.day_of_week, r.start_time, r.end_time) for r in created] == [(6, 600, 840)]
    assert len(rules.list_rules(db, court.id, active_only=True)) == 2


def test_seed_with_malformed_opening_hours_creates_nothing(db, court):
    facility = db.get(Facilities, court.facility_id)
    facility.opening_hours = "not json"
    db.commit()

    assert rules.seed_rules_from_opening_hours(db, court.id) == []


def test_seed_reactivates_deactivated_identical_rule(db, court):
    monday = db.query(AvailabilityRules).filter_by(court_id=court.id).one()
    rules.delete_rule(db, court.id, monday.id)
    facility = db.get(Facilities, court.facility_id)
    facility.opening_hours = json.dumps({"monday": {"open": "09:00", "close": "18:00"}})
    db.commit()

    created = rules.seed_rules_from_opening_hours(db, court.id)
    assert [r.id for r in created] == [monday.id]
    assert created[0].is_active == 1
