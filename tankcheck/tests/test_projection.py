# tests/test_projection.py
from tankcheck.engine.metrics import compute_metrics
from tankcheck.engine.projection import project_health
from tankcheck.schemas import FuelType, InspectionRecord


def test_projection_horizons_and_monotonic_decline():
    rec = InspectionRecord(calendar_age=6, house_psi=90, fuel_type=FuelType.GAS, hardness_gpg=8)
    metrics = compute_metrics(rec)
    points = project_health(rec, metrics)

    assert [p.months for p in points] == [12, 24, 36]
    bio = [p.bio_age for p in points]
    fail = [p.fail_prob for p in points]
    health = [p.health_score for p in points]
    assert bio == sorted(bio) and bio[0] >= metrics.bio_age
    assert fail == sorted(fail) and fail[0] >= metrics.fail_prob
    assert health == sorted(health, reverse=True) and health[0] <= metrics.health_score


def test_projection_respects_bio_age_ceiling():
    rec = InspectionRecord(calendar_age=18, house_psi=120, fuel_type=FuelType.ELECTRIC)
    points = project_health(rec, compute_metrics(rec), months=(60, 120))
    assert all(p.bio_age <= 20.0 for p in points)


def test_tankless_projection():
    rec = InspectionRecord(calendar_age=4, house_psi=60, fuel_type=FuelType.TANKLESS_ELECTRIC)
    points = project_health(rec, compute_metrics(rec), months=(12,))
    assert len(points) == 1
    assert points[0].bio_age > 4.0
